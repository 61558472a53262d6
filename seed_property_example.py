# seed_property_example.py
"""
Seed a complete example property tour from local .spz files.

Uploads each splat to Cloud Storage, writes one `ready` space per room and a
public tour that links them, then prints the share token.

    python seed_property_example.py --dir ../real-estate/property-example
"""
from pathlib import Path

from app.services import storage

ROOMS = [
    {"file": "world-hero.spz", "label": "Living Room"},
    {"file": "world-kitchen.spz", "label": "Kitchen"},
    {"file": "world-bed.spz", "label": "Bedroom"},
]

TEAM_ID = "example"
TOUR_ID = "example-property-tour"


def run(example_dir: Path, dry_run: bool = False):
    rooms = []
    for order, room in enumerate(ROOMS):
        space_id = "example-" + "-".join(room["label"].lower().split())
        src = example_dir / room["file"]
        print(f"--- {room['label']} ---")
        if not src.exists():
            raise SystemExit(f"File not found: {src}")

        data = src.read_bytes()
        print(f"  read {len(data) / 1024 / 1024:.1f} MB from {src.name}")

        path = storage.space_model_path(space_id, "model.spz")
        if dry_run:
            print(f"  [DRY] would upload to {path} and write spaces/{space_id}")
        else:
            url = storage.upload_bytes(data, path, "application/octet-stream")
            space = storage.new_space(TEAM_ID, "system", room["label"], "Example Property", image_count=0)
            space.update({
                "id": space_id,
                "status": "ready",
                "splatUrl": url,
                "splatUrl500k": url,
                "splatUrl100k": url,
                "imageUrls": [],
            })
            storage.create_space(space)
            print(f"  uploaded {url}")
        rooms.append({"spaceId": space_id, "label": room["label"], "order": order})

    tour = storage.new_tour(
        TEAM_ID, "system", "Example Property", "123 Example Street",
        "A complete property tour with living room, kitchen, and bedroom.",
    )
    tour.update({"id": TOUR_ID, "rooms": rooms})
    if dry_run:
        print(f"[DRY] would write tours/{TOUR_ID} with {len(rooms)} rooms")
        return tour

    storage.create_tour(tour)
    print(f"\nTour created: {TOUR_ID}")
    print(f"Share token: {tour['shareToken']}")
    print(f"View at: /t/{tour['shareToken']}")
    return tour


if __name__ == "__main__":
    import argparse
    ap = argparse.ArgumentParser()
    ap.add_argument("--dir", type=Path, default=Path("../real-estate/property-example"),
                    help="folder holding the example .spz files")
    ap.add_argument("--dry-run", action="store_true", help="print changes, don't write")
    args = ap.parse_args()
    run(args.dir, dry_run=args.dry_run)
