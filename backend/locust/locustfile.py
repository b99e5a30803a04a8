"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Many drivers, one spot
  locust -f locustfile.py --tags throughput   # Nearby search through the cache
  locust -f locustfile.py --tags edge         # Bad input
  locust -f locustfile.py                     # All tests
"""

import random
import uuid

from locust import HttpUser, task, between, tag, events

# Around IIT Guwahati
CENTER_LAT = 26.1870
CENTER_LON = 91.6916

# Shared state
SPOT_IDS = []
CONTESTED_SPOT_ID = None


def random_driver():
    return f"driver_{uuid.uuid4().hex[:8]}"


def jitter(value, spread=0.02):
    return value + random.uniform(-spread, spread)


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print("SETUP: Contested spot is created by the first ConcurrencyUser")
    print("=" * 60)


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - 100 drivers -> 1 spot

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT COUNT(*) FROM bookings WHERE spot_id = X AND status = 'active';
    Should be <= 1
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.user_id = random_driver()
        if CONTESTED_SPOT_ID:
            return
        resp = self.client.post("/api/v1/spots/", json={
            "name": "Contested Spot",
            "coordinates": {"latitude": CENTER_LAT, "longitude": CENTER_LON},
            "price": 10,
        })
        if resp.status_code == 201:
            globals()["CONTESTED_SPOT_ID"] = resp.json()["id"]
            print(f"\nCreated contested spot {CONTESTED_SPOT_ID}\n")

    @tag("concurrency")
    @task
    def book_contested_spot(self):
        """Everyone fights for the same spot; winners release it again."""
        if not CONTESTED_SPOT_ID:
            return

        with self.client.post("/api/v1/bookings/",
            json={"user_id": self.user_id, "spot_id": CONTESTED_SPOT_ID},
            catch_response=True
        ) as resp:
            if resp.status_code == 201:
                resp.success()
                booking_id = resp.json()["id"]
                self.client.post(f"/api/v1/bookings/{booking_id}/finish",
                    name="/api/v1/bookings/{id}/finish")
            elif resp.status_code == 409:
                resp.success()  # Expected: someone else holds it
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false, run again

    Compare:
      - Avg response time
      - Requests/sec
      - P95/P99 latency
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def search_nearby(self):
        """Drivers around the same area issue overlapping range scans."""
        self.client.get("/api/v1/spots/nearby",
            params={"lat": jitter(CENTER_LAT), "lon": jitter(CENTER_LON)},
            name="/api/v1/spots/nearby [cached]")

    @tag("throughput", "read")
    @task(3)
    def nearest_spot(self):
        self.client.get("/api/v1/spots/nearest",
            params={"lat": jitter(CENTER_LAT), "lon": jitter(CENTER_LON)},
            name="/api/v1/spots/nearest")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_spot(self):
        with self.client.post("/api/v1/bookings/",
            json={"user_id": random_driver(), "spot_id": "no-such-spot"},
            catch_response=True
        ) as resp:
            self._expect(resp, [409])

    @tag("edge")
    @task
    def finish_unknown_booking(self):
        with self.client.post("/api/v1/bookings/no-such-booking/finish",
            name="/api/v1/bookings/{id}/finish [missing]",
            catch_response=True
        ) as resp:
            self._expect(resp, [404])

    @tag("edge")
    @task
    def out_of_range_location(self):
        with self.client.get("/api/v1/spots/nearby",
            params={"lat": 123, "lon": 500},
            catch_response=True
        ) as resp:
            self._expect(resp, [422])

    @tag("edge")
    @task
    def huge_radius(self):
        with self.client.get("/api/v1/spots/nearby",
            params={"lat": CENTER_LAT, "lon": CENTER_LON, "radius_m": 10_000_000},
            catch_response=True
        ) as resp:
            self._expect(resp, [422])

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/api/v1/bookings/",
            data="not json at all",
            catch_response=True
        ) as resp:
            self._expect(resp, [400, 422])


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Simulates real traffic:
      - Mostly searching
      - Some bookings, most of them finished, a few cancelled
      - Rare spot registrations
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.user_id = random_driver()
        self.active_booking = None

    @task(50)
    def search(self):
        resp = self.client.get("/api/v1/spots/nearby",
            params={"lat": jitter(CENTER_LAT), "lon": jitter(CENTER_LON), "radius_m": 3000},
            name="/api/v1/spots/nearby")
        if resp.status_code == 200:
            for spot in resp.json().get("spots", []):
                if spot["id"] not in SPOT_IDS:
                    SPOT_IDS.append(spot["id"])

    @task(10)
    def book(self):
        if self.active_booking or not SPOT_IDS:
            return
        resp = self.client.post("/api/v1/bookings/",
            json={"user_id": self.user_id, "spot_id": random.choice(SPOT_IDS)})
        if resp.status_code == 201:
            self.active_booking = resp.json()["id"]

    @task(8)
    def end_session(self):
        if not self.active_booking:
            return
        if random.random() < 0.8:
            self.client.post(f"/api/v1/bookings/{self.active_booking}/finish",
                name="/api/v1/bookings/{id}/finish")
        else:
            self.client.delete(f"/api/v1/bookings/{self.active_booking}",
                name="/api/v1/bookings/{id}")
        self.active_booking = None

    @task(5)
    def history(self):
        self.client.get("/api/v1/bookings/", params={"user_id": self.user_id},
            name="/api/v1/bookings/?user_id")

    @task(2)
    def register_spot(self):
        resp = self.client.post("/api/v1/spots/", json={
            "name": f"Spot {random.randint(1, 10000)}",
            "coordinates": {"latitude": jitter(CENTER_LAT), "longitude": jitter(CENTER_LON)},
            "price": random.choice([0, 5, 10, 20]),
            "type": random.choice(["standard", "covered", "electric"]),
        })
        if resp.status_code == 201:
            SPOT_IDS.append(resp.json()["id"])
