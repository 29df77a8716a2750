"""
Concurrency Simulation Script

Fires many simultaneous add-to-cart and create-user requests for the SAME
key against a running server and checks that exactly one of each is stored.
Run from project root: python scripts/simulate.py

Needs a running server (python -m bistro.main) and a database it may write to.
"""

import argparse
import asyncio
import sys
import time
from datetime import datetime
from typing import Any

import httpx
from bson import ObjectId

API_BASE_URL = "http://localhost:5000/api/v1"
CONCURRENT_REQUESTS = 25


async def send_add_to_cart(
    client: httpx.AsyncClient,
    request_num: int,
    item: dict[str, Any],
) -> dict[str, Any]:
    """Post one add-to-cart request and record the status code."""
    start_time = time.time()
    try:
        response = await client.post(f"{API_BASE_URL}/add-to-cart", json=item, timeout=30.0)
        return {
            "request_num": request_num,
            "status": response.status_code,
            "time": round(time.time() - start_time, 3),
        }
    except httpx.HTTPError as e:
        return {
            "request_num": request_num,
            "status": None,
            "error": str(e)[:100],
            "time": round(time.time() - start_time, 3),
        }


async def send_create_user(
    client: httpx.AsyncClient,
    request_num: int,
    email: str,
) -> dict[str, Any]:
    """Post one create-user request; True when it inserted a document."""
    try:
        response = await client.post(
            f"{API_BASE_URL}/create-user", json={"email": email}, timeout=30.0
        )
        return {"request_num": request_num, "inserted": "insertedId" in response.json()}
    except httpx.HTTPError as e:
        return {"request_num": request_num, "inserted": False, "error": str(e)[:100]}


async def run_simulation(num_requests: int = CONCURRENT_REQUESTS) -> bool:
    item_id = str(ObjectId())
    email = f"sim-{item_id[-6:]}@bistro.test"
    item = {"_id": item_id, "email": email, "name": "Simulated Soup", "price": 4.5}

    print("=" * 70)
    print("🔥 DUPLICATE-GUARD SIMULATION")
    print("=" * 70)
    print(f"📋 Concurrent requests: {num_requests}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"🛒 Cart pair: ({item_id}, {email})")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    async with httpx.AsyncClient() as client:
        cart_results = await asyncio.gather(
            *[send_add_to_cart(client, i + 1, item) for i in range(num_requests)]
        )
        user_results = await asyncio.gather(
            *[send_create_user(client, i + 1, email) for i in range(num_requests)]
        )

        # Leave the database as we found it
        await client.delete(
            f"{API_BASE_URL}/delete-from-cart/{item_id}", params={"email": email}
        )

    accepted = [r for r in cart_results if r["status"] == 201]
    rejected = [r for r in cart_results if r["status"] == 400]
    errors = [r for r in cart_results if r["status"] not in (201, 400)]
    users_inserted = [r for r in user_results if r["inserted"]]

    print("\n📊 RESULTS")
    print(f"   add-to-cart accepted: {len(accepted)}  (expected 1)")
    print(f"   add-to-cart rejected: {len(rejected)}  (expected {num_requests - 1})")
    print(f"   add-to-cart errors:   {len(errors)}")
    print(f"   create-user inserted: {len(users_inserted)}  (expected 1)")
    if cart_results:
        avg_time = round(sum(r["time"] for r in cart_results) / len(cart_results), 3)
        print(f"   Average response: {avg_time}s")

    if errors:
        print("\n⚠️  Error details (showing first 5):")
        for r in errors[:5]:
            print(f"   Request #{r['request_num']}: {r.get('error', r['status'])}")

    ok = len(accepted) == 1 and len(users_inserted) == 1 and not errors
    print("\n" + ("✅ Duplicate guards held" if ok else "❌ Duplicate guards FAILED"))
    print(f"ℹ️  User {email} was left in place; remove it with DELETE /user/<id> as an admin.")
    return ok


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Duplicate-guard simulation")
    parser.add_argument("--requests", type=int, default=CONCURRENT_REQUESTS,
                        help="Number of concurrent requests per endpoint")
    parser.add_argument("--base-url", default=API_BASE_URL, help="API base URL")
    args = parser.parse_args()

    API_BASE_URL = args.base_url.rstrip("/")
    sys.exit(0 if asyncio.run(run_simulation(args.requests)) else 1)
