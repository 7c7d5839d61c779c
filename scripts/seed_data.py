#!/usr/bin/env python3
"""
Seed script — creates a realistic dataset for exercising the social graph.

Creates:
  • 8 accounts
  • 8 profiles (communities, venues, businesses, councils, artists, …)
  • A follow graph (each account follows 3 profiles and 2 other accounts)
  • Likes on a random subset of profiles
  • 0-4 reviews per profile

Run after the API is up:
  python scripts/seed_data.py --api-url http://localhost:8000

All IDs are printed so you can use them in curl commands.
"""
import argparse
import json
import random
import time
import urllib.request
import urllib.error
from dataclasses import dataclass


BASE_ACCOUNTS = [
    ("alex_chen", "Alex Chen"),
    ("priya_s", "Priya Singh"),
    ("mei_lin", "Mei Lin"),
    ("tomas_r", "Tomás Rivera"),
    ("aroha_k", "Aroha King"),
    ("sam_nguyen", "Sam Nguyen"),
    ("fatima_a", "Fatima Ahmed"),
    ("liam_obrien", "Liam O'Brien"),
]

BASE_PROFILES = [
    ("Indian Community Australia", "indian-community-au", "community", "Sydney"),
    ("Filipino Network NZ", "filipino-network-nz", "community", "Auckland"),
    ("Multicultural Arts Victoria", "multicultural-arts-vic", "organisation", "Melbourne"),
    ("Sydney Opera House", "sydney-opera-house", "venue", "Sydney"),
    ("Spice of India", "spice-of-india", "business", "Sydney"),
    ("City of Sydney Council", "city-of-sydney", "council", "Sydney"),
    ("Ministry of Ethnic Communities", "ministry-ethnic-communities", "government", "Wellington"),
    ("DJ Kai Lin", "dj-kai-lin", "artist", "Sydney"),
]

SAMPLE_COMMENTS = [
    "Wonderful atmosphere, will be back.",
    "Friendly people and great events.",
    "Good, but the queue was long.",
    None,
    "Exceeded expectations!",
    "Decent overall.",
]


@dataclass
class ApiClient:
    base_url: str

    def post(self, path: str, data: dict) -> dict:
        url = f"{self.base_url}{path}"
        body = json.dumps(data).encode()
        req = urllib.request.Request(
            url, data=body, headers={"Content-Type": "application/json"}, method="POST"
        )
        try:
            with urllib.request.urlopen(req, timeout=10) as resp:
                return json.loads(resp.read())
        except urllib.error.HTTPError as e:
            body = e.read().decode()
            print(f"  HTTP {e.code} on POST {path}: {body}")
            return {}

    def get(self, path: str) -> dict:
        url = f"{self.base_url}{path}"
        req = urllib.request.Request(url, method="GET")
        try:
            with urllib.request.urlopen(req, timeout=10) as resp:
                return json.loads(resp.read())
        except urllib.error.HTTPError as e:
            print(f"  HTTP {e.code} on GET {path}")
            return {}


def wait_for_api(client: ApiClient, retries: int = 15) -> None:
    print(f"Waiting for API at {client.base_url} ...")
    for i in range(retries):
        try:
            result = client.get("/health")
            if result.get("status") == "ok":
                print("  API is ready!\n")
                return
        except (urllib.error.URLError, ConnectionError):
            pass
        time.sleep(3)
    raise RuntimeError(f"API not reachable at {client.base_url} after {retries} retries")


def main(api_url: str) -> None:
    client = ApiClient(api_url)
    wait_for_api(client)

    # ── Accounts ──────────────────────────────────────────────────────────
    print("Creating accounts...")
    account_ids: list[str] = []
    for username, display_name in BASE_ACCOUNTS:
        result = client.post(
            "/api/users",
            {"username": username, "password": "culture-pass", "displayName": display_name},
        )
        uid = result.get("id", "")
        if uid:
            account_ids.append(uid)
            print(f"  ✓ {username} ({uid})")
        else:
            print(f"  ✗ Failed to create {username}")

    # ── Profiles ──────────────────────────────────────────────────────────
    print("\nCreating profiles...")
    profiles: list[dict] = []
    for name, slug, entity_type, city in BASE_PROFILES:
        result = client.post(
            "/api/profiles",
            {"name": name, "slug": slug, "entityType": entity_type, "city": city},
        )
        if result.get("id"):
            profiles.append(result)
            print(f"  ✓ {name} [{entity_type}] ({result['id']})")
        else:
            print(f"  ✗ Failed to create {slug}")

    if not account_ids or not profiles:
        print("Nothing to connect — aborting")
        return

    # ── Follow graph ──────────────────────────────────────────────────────
    print("\nCreating follow relationships...")
    follows = 0
    for follower_id in account_ids:
        for p in random.sample(profiles, k=min(3, len(profiles))):
            client.post(
                "/api/follow",
                {"followerId": follower_id, "targetId": p["id"], "targetType": p["entityType"]},
            )
            follows += 1
        others = [u for u in account_ids if u != follower_id]
        for followee_id in random.sample(others, k=min(2, len(others))):
            client.post(
                "/api/follow",
                {"followerId": follower_id, "targetId": followee_id, "targetType": "user"},
            )
            follows += 1
    print(f"  ✓ {follows} follows created")

    # ── Likes ─────────────────────────────────────────────────────────────
    print("\nAdding likes...")
    likes = 0
    for p in profiles:
        for user_id in random.sample(account_ids, k=random.randint(0, 4)):
            client.post(
                "/api/like",
                {"userId": user_id, "targetId": p["id"], "targetType": p["entityType"]},
            )
            likes += 1
    print(f"  ✓ {likes} likes added")

    # ── Reviews ───────────────────────────────────────────────────────────
    print("\nSubmitting reviews...")
    reviews = 0
    for p in profiles:
        for user_id in random.sample(account_ids, k=random.randint(0, 4)):
            client.post(
                "/api/reviews",
                {
                    "userId": user_id,
                    "targetId": p["id"],
                    "rating": random.randint(3, 5),
                    "comment": random.choice(SAMPLE_COMMENTS),
                },
            )
            reviews += 1
    print(f"  ✓ {reviews} reviews submitted")

    # ── Print summary ─────────────────────────────────────────────────────
    print("\n" + "=" * 60)
    print("Seed complete! Here are some commands to try:\n")
    u = account_ids[0]
    p = profiles[0]
    print(f"# Profile '{p['slug']}' with its counters:")
    print(f"  curl -s '{api_url}/api/profiles/{p['slug']}' | python3 -m json.tool\n")
    print(f"# Members of '{p['slug']}':")
    print(f"  curl -s '{api_url}/api/members/{p['id']}' | python3 -m json.tool\n")
    print(f"# Who '{BASE_ACCOUNTS[0][0]}' follows:")
    print(f"  curl -s '{api_url}/api/following/{u}' | python3 -m json.tool\n")
    print(f"# Reviews of '{p['slug']}':")
    print(f"  curl -s '{api_url}/api/reviews/{p['id']}' | python3 -m json.tool\n")
    print(f"# Check Prometheus metrics: {api_url}/metrics")
    print("=" * 60)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the social graph service")
    parser.add_argument("--api-url", default="http://localhost:8000", help="API base URL")
    args = parser.parse_args()
    main(args.api_url)
