"""Send one wound photo to a running WoundWise API and print the result.

Usage:
    python scripts/assess_image.py photo.jpg --age 67 --diabetes --meds "metformin"
    python scripts/assess_image.py photo.jpg --age 30 --api http://localhost:8000/api/v1
"""

import argparse
import json
import time

import requests

API = "http://localhost:8000/api/v1"


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("image", help="Path to a wound photo")
    parser.add_argument("--age", type=int, required=True)
    parser.add_argument("--high-bp", action="store_true")
    parser.add_argument("--diabetes", action="store_true")
    parser.add_argument("--meds", default="", help="Free-text medication list")
    parser.add_argument("--api", default=API)
    parser.add_argument("--timeout", type=float, default=120)
    args = parser.parse_args()

    form = {
        "age": str(args.age),
        "has_high_bp": str(args.high_bp).lower(),
        "has_diabetes": str(args.diabetes).lower(),
        "medications": args.meds,
    }

    t0 = time.time()
    with open(args.image, "rb") as f:
        resp = requests.post(
            f"{args.api}/assessments",
            data=form,
            files={"image": (args.image, f, "application/octet-stream")},
            timeout=args.timeout,
        )
    elapsed = time.time() - t0
    resp.raise_for_status()
    r = resp.json()

    print(f"=== {r['woundType']} ({elapsed:.1f}s) ===")
    if r.get("usedFallback"):
        print("  ** Estimated result, not an image analysis **")
    print(f"  Severity: {r['severity']} ({r['severityLabel']}) | Urgency: {r['urgency']}")
    print(f"  Recovery: {r['recoveryMin']}-{r['recoveryMax']} days | Hospital: {r['hospitalRecommended']}")
    if r.get("aiSummary"):
        print(f"  Summary: {r['aiSummary']}")
    for rf in r.get("riskFactors", []):
        print(f"  Risk [{rf['impact']}] {rf['label']}: {rf['description']}")
    for group in r.get("precautions", []):
        print(f"  -- {group['title']}")
        for item in group["items"]:
            print(f"     * {item}")
    print()
    print(json.dumps(r, indent=2))


if __name__ == "__main__":
    main()
