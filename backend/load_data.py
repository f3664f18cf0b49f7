"""
Data Loader Script - Seeds a running API with sample_data.json.

Creates the sample students and classes, then bulk-marks the sample
attendance per class and date. Students and classes that already exist
(400 conflict) are looked up instead, so the script can be re-run.

Usage:
    python load_data.py                              # Uses default URL
    python load_data.py http://localhost:8000         # Custom API URL
    python load_data.py http://backend:8000           # Inside Docker network
"""

import json
import sys
import os

import httpx


def find_data_file():
    data_file = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "sample_data.json")
    if not os.path.exists(data_file):
        # Try current directory
        data_file = "sample_data.json"
    if not os.path.exists(data_file):
        print("Error: Could not find sample_data.json")
        sys.exit(1)
    return data_file


def create_or_find(client, path, payload, match):
    """POST a resource; on a 400 conflict, find the existing one in the list."""
    resp = client.post(path, json=payload)
    if resp.status_code == 201:
        return resp.json()["data"], True
    if resp.status_code == 400:
        existing = client.get(path).json()["data"]
        for item in existing:
            if all(item.get(k) == v for k, v in match.items()):
                return item, False
    print(f"HTTP Error {resp.status_code} on {path}: {resp.text}")
    sys.exit(1)


def main():
    api_url = sys.argv[1] if len(sys.argv) > 1 else os.getenv("API_URL", "http://localhost:8000")

    data_file = find_data_file()
    print(f"Loading data from: {data_file}")
    with open(data_file, 'r') as f:
        data = json.load(f)

    students_by_roll = {}
    classes_by_key = {}
    created = {"students": 0, "classes": 0, "marks_created": 0, "marks_updated": 0}

    with httpx.Client(base_url=api_url, timeout=30.0) as client:
        for student in data.get("students", []):
            item, is_new = create_or_find(client, "/api/students", student,
                                          {"roll_number": student["roll_number"]})
            students_by_roll[student["roll_number"]] = item["id"]
            created["students"] += int(is_new)

        for school_class in data.get("classes", []):
            item, is_new = create_or_find(client, "/api/classes", school_class,
                                          {"name": school_class["name"], "subject": school_class["subject"]})
            classes_by_key[(school_class["name"], school_class["subject"])] = item["id"]
            created["classes"] += int(is_new)

        for session in data.get("attendance", []):
            class_id = classes_by_key[(session["class_name"], session["subject"])]
            payload = {
                "class_id": class_id,
                "date": session["date"],
                "records": [
                    {"student_id": students_by_roll[roll], "status": status}
                    for roll, status in session["marks"].items()
                ]
            }
            resp = client.post("/api/attendance/bulk", json=payload)
            resp.raise_for_status()
            result = resp.json()
            created["marks_created"] += result.get("created", 0)
            created["marks_updated"] += result.get("updated", 0)

        stats = client.get("/api/attendance/stats").json()["data"]

    print("=" * 60)
    print("SEED SUMMARY")
    print("=" * 60)
    print(f"  Students created:      {created['students']}")
    print(f"  Classes created:       {created['classes']}")
    print(f"  Marks created:         {created['marks_created']}")
    print(f"  Marks updated:         {created['marks_updated']}")
    print(f"  Overall attendance:    {stats['percentage']}% of {stats['total']} marks")
    print("=" * 60)


if __name__ == "__main__":
    main()
