"""
Пример использования сервиса распознавания ID карт
"""
import base64
import json
import sys
from pathlib import Path

import requests

DEFAULT_MODELS = {
    "detection": "google/gemini-flash-1.5",
    "localization": "anthropic/claude-3.5-sonnet",
    "ocr": "openai/gpt-4o"
}

FIELDS = [
    ("identityNumber", "ID number"),
    ("titleEn", "Title"),
    ("firstNameEn", "First name"),
    ("lastNameEn", "Last name"),
    ("titleTh", "Title (TH)"),
    ("firstNameTh", "First name (TH)"),
    ("lastNameTh", "Last name (TH)"),
]


def process_id_cards(image_paths: list, api_url: str = "http://localhost:8000") -> dict:
    """
    Отправить изображения ID карт на распознавание

    Args:
        image_paths: Пути к изображениям
        api_url: URL сервиса

    Returns:
        Результаты распознавания и сводка
    """
    photos = []
    for image_path in image_paths:
        image_file = Path(image_path)
        if not image_file.exists():
            raise FileNotFoundError(f"Image not found: {image_path}")

        print(f"📸 Reading image: {image_path}")
        with open(image_file, "rb") as f:
            image_bytes = f.read()
        photos.append({
            "name": image_file.name,
            "data": base64.b64encode(image_bytes).decode("utf-8")
        })

    print(f"🚀 Sending {len(photos)} photo(s) to {api_url}/api/v1/idcard/process")

    # Три этапа на каждое фото, поэтому таймаут большой
    response = requests.post(
        f"{api_url}/api/v1/idcard/process",
        json={"photos": photos, "models": DEFAULT_MODELS},
        timeout=180 * len(photos)
    )

    if response.status_code != 200:
        print(f"❌ Error: {response.status_code}")
        print(response.json())
        return None

    result = response.json()

    for item in result["results"]:
        print(f"\n🪪 {item['image_name']} ({item['processing_time_ms']}ms)")
        if not item["success"]:
            print(f"   ❌ {item['status']}: {item['error']}")
            continue

        print(f"   📊 Document confidence: {item['detection_confidence']}%")
        readings = item["field_readings"]
        for field_name, label in FIELDS:
            reading = readings.get(field_name)
            if reading and reading["text"]:
                print(f"   {label}: {reading['text']} ({reading['confidence']}%)")
        date_of_birth = item["date_of_birth"]
        if date_of_birth["text"]:
            print(f"   Date of birth: {date_of_birth['text']} ({date_of_birth['confidence']}%)")
        if item["low_confidence_fields"]:
            print(f"   ⚠️  Low confidence: {', '.join(item['low_confidence_fields'])}")

    summary = result["summary"]
    print(
        f"\n✅ Done: {summary['success_count']}/{summary['total']} succeeded "
        f"in {summary['processing_time_ms']}ms"
    )
    return result


def main():
    """Точка входа"""
    if len(sys.argv) < 2:
        print("Usage: python example.py <image> [<image> ...]")
        print("Example: python example.py card1.jpg card2.png")
        sys.exit(1)

    image_paths = sys.argv[1:]

    try:
        result = process_id_cards(image_paths)

        if result:
            output_file = "idcard_results.json"
            with open(output_file, "w", encoding="utf-8") as f:
                json.dump(result, f, indent=2, ensure_ascii=False)
            print(f"\n💾 Full result saved to: {output_file}")

    except FileNotFoundError as e:
        print(f"❌ Error: {e}")
        sys.exit(1)

    except requests.exceptions.ConnectionError:
        print("❌ Error: Cannot connect to ID card service at http://localhost:8000")
        print("Make sure the service is running: python run.py")
        sys.exit(1)


if __name__ == "__main__":
    main()
