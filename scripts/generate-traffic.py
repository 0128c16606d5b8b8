#!/usr/bin/env python3
"""
Traffic generator for the FarmDirect marketplace
Simulates farmers listing and restocking produce, and buyers browsing, ordering and cancelling
"""

import requests
import random
import time
import threading
from datetime import datetime

API_URL = "http://localhost:8000"

LOCATIONS = ["Nashik, Maharashtra", "Mysuru, Karnataka", "Guntur, Andhra Pradesh", "Ludhiana, Punjab"]

PRODUCE = [
    {"name": "Tomatoes", "category": "vegetables", "marketPrice": 45, "farmerPrice": 38},
    {"name": "Potatoes", "category": "vegetables", "marketPrice": 25, "farmerPrice": 20},
    {"name": "Onions", "category": "vegetables", "marketPrice": 30, "farmerPrice": 25},
    {"name": "Apples", "category": "fruits", "marketPrice": 120, "farmerPrice": 95},
    {"name": "Bananas", "category": "fruits", "marketPrice": 40, "farmerPrice": 32},
    {"name": "Rice", "category": "grains", "marketPrice": 45, "farmerPrice": 38},
    {"name": "Wheat", "category": "grains", "marketPrice": 28, "farmerPrice": 22},
]

SEARCH_TERMS = ["tom", "apple", "rice", "nashik", "mysuru", "xyz"]

# Weight for buyer actions
ACTION_WEIGHTS = {
    "browse": 0.4,
    "search": 0.15,
    "market_prices": 0.1,
    "order": 0.2,
    "view_orders": 0.1,
    "cancel": 0.05,
}


def get_headers(token):
    return {"Authorization": f"Bearer {token}"}


def log(message):
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    print(f"[{timestamp}] {message}")


class Participant:
    def __init__(self, user_id, user_type):
        self.user_id = user_id
        self.user_type = user_type
        self.email = f"{user_type}_{user_id}@farmdirect.test"
        self.password = "password123"
        self.token = None
        self.products = []
        self.orders = []

    def label(self):
        return f"{self.user_type.title()} {self.user_id}"

    def register(self):
        """Register an account, falling back to login when it already exists."""
        payload = {
            "name": f"{self.user_type.title()} {self.user_id}",
            "email": self.email,
            "password": self.password,
            "type": self.user_type,
            "phone": f"98{random.randint(10000000, 99999999)}",
        }
        if self.user_type == "farmer":
            payload["farmLocation"] = random.choice(LOCATIONS)

        try:
            response = requests.post(f"{API_URL}/api/auth/register", json=payload, timeout=5)
            if response.status_code == 201:
                self.token = response.json()["token"]
                log(f"{self.label()}: Registered")
                return True
            return self.login()
        except Exception as e:
            log(f"{self.label()}: Registration error - {e}")
        return False

    def login(self):
        password = self.password
        # Simulate authentication failures (~1%)
        if random.random() < 0.01:
            password = "wrong_password"

        try:
            response = requests.post(
                f"{API_URL}/api/auth/login",
                json={"email": self.email, "password": password},
                timeout=5
            )
            if response.status_code == 200:
                self.token = response.json()["token"]
                log(f"{self.label()}: Logged in")
                return True
            log(f"{self.label()}: Login failed - {response.status_code}")
        except Exception as e:
            log(f"{self.label()}: Login error - {e}")
        return False

    def fetch_products(self, **params):
        try:
            response = requests.get(f"{API_URL}/api/products", params=params, timeout=5)
            if response.status_code == 200:
                self.products = response.json()["products"]
                log(f"{self.label()}: Fetched {len(self.products)} products {params or ''}")
                return True
        except Exception as e:
            log(f"{self.label()}: Failed to fetch products - {e}")
        return False

    def browse_products(self):
        if not self.products:
            self.fetch_products()

        if self.products:
            product = random.choice(self.products)
            try:
                response = requests.get(f"{API_URL}/api/products/{product['id']}", timeout=5)
                if response.status_code == 200:
                    log(f"{self.label()}: Viewing {product['name']} from {product['farmerName']}")
                    return True
            except Exception as e:
                log(f"{self.label()}: Failed to view product - {e}")
        return False

    def search(self):
        category = random.choice(["all", "vegetables", "fruits", "grains"])
        return self.fetch_products(category=category, search=random.choice(SEARCH_TERMS))

    def view_market_prices(self):
        try:
            response = requests.get(f"{API_URL}/api/market-prices", timeout=5)
            if response.status_code == 200:
                log(f"{self.label()}: Viewed {response.json()['count']} market prices")
                return True
        except Exception as e:
            log(f"{self.label()}: Failed to fetch market prices - {e}")
        return False

    def place_order(self):
        self.fetch_products()
        in_stock = [p for p in self.products if p["stock"] > 0]
        if not in_stock:
            return False

        lines = random.sample(in_stock, k=min(len(in_stock), random.randint(1, 3)))
        items = [
            # Occasionally over-order to exercise the insufficient stock path
            {"productId": p["id"], "quantity": random.randint(1, 5) if random.random() > 0.05 else p["stock"] + 1}
            for p in lines
        ]
        try:
            response = requests.post(
                f"{API_URL}/api/orders",
                json={"items": items},
                headers=get_headers(self.token),
                timeout=10
            )
            if response.status_code == 201:
                order = response.json()["order"]
                self.orders.append(order)
                log(f"{self.label()}: Order {order['orderId']} placed - ₹{order['total']}")
                return True
            log(f"{self.label()}: Order rejected - {response.json().get('message')}")
        except Exception as e:
            log(f"{self.label()}: Order failed - {e}")
        return False

    def view_orders(self):
        try:
            response = requests.get(f"{API_URL}/api/orders", headers=get_headers(self.token), timeout=5)
            if response.status_code == 200:
                log(f"{self.label()}: Viewing {response.json()['count']} orders")
                return True
        except Exception as e:
            log(f"{self.label()}: Failed to view orders - {e}")
        return False

    def cancel_order(self):
        if not self.orders:
            return False
        order = self.orders.pop(random.randrange(len(self.orders)))
        try:
            response = requests.delete(
                f"{API_URL}/api/orders/{order['orderId']}",
                headers=get_headers(self.token),
                timeout=5
            )
            log(f"{self.label()}: Cancel {order['orderId']} - {response.status_code}")
            return response.status_code == 200
        except Exception as e:
            log(f"{self.label()}: Cancel failed - {e}")
        return False

    def random_action(self):
        action = random.choices(
            list(ACTION_WEIGHTS.keys()),
            weights=list(ACTION_WEIGHTS.values())
        )[0]

        if action == "browse":
            return self.browse_products()
        elif action == "search":
            return self.search()
        elif action == "market_prices":
            return self.view_market_prices()
        elif action == "order":
            return self.place_order()
        elif action == "view_orders":
            return self.view_orders()
        elif action == "cancel":
            return self.cancel_order()

    # Farmer actions
    def list_produce(self):
        produce = dict(random.choice(PRODUCE))
        produce["stock"] = random.randint(0, 60)
        produce["description"] = "Freshly harvested"
        try:
            response = requests.post(
                f"{API_URL}/api/products",
                json=produce,
                headers=get_headers(self.token),
                timeout=5
            )
            if response.status_code == 201:
                product = response.json()["product"]
                self.products.append(product)
                log(f"{self.label()}: Listed {product['name']} ({product['stock']} kg)")
                return True
            log(f"{self.label()}: Listing failed - {response.status_code}")
        except Exception as e:
            log(f"{self.label()}: Listing failed - {e}")
        return False

    def restock(self):
        if not self.products:
            return False
        product = random.choice(self.products)
        try:
            response = requests.patch(
                f"{API_URL}/api/products/{product['id']}/stock",
                json={"stock": random.randint(0, 80)},
                headers=get_headers(self.token),
                timeout=5
            )
            if response.status_code == 200:
                log(f"{self.label()}: Restocked {product['name']} to {response.json()['product']['stock']}")
                return True
            if response.status_code == 404:
                self.products.remove(product)
        except Exception as e:
            log(f"{self.label()}: Restock failed - {e}")
        return False

    def advance_orders(self):
        """Move incoming orders along: pending -> confirmed -> shipped -> delivered."""
        next_status = {"pending": "confirmed", "confirmed": "shipped", "shipped": "delivered"}
        try:
            response = requests.get(f"{API_URL}/api/orders", headers=get_headers(self.token), timeout=5)
            if response.status_code != 200:
                return False
            open_orders = [o for o in response.json()["orders"] if o["status"] in next_status]
            if not open_orders:
                return False
            order = random.choice(open_orders)
            status = next_status[order["status"]]
            response = requests.patch(
                f"{API_URL}/api/orders/{order['orderId']}/status",
                json={"status": status},
                headers=get_headers(self.token),
                timeout=5
            )
            log(f"{self.label()}: {order['orderId']} -> {status} ({response.status_code})")
            return response.status_code == 200
        except Exception as e:
            log(f"{self.label()}: Failed to advance orders - {e}")
        return False


def farmer_session(user_id, duration_seconds):
    farmer = Participant(user_id, "farmer")
    if not farmer.register():
        return
    end_time = time.time() + duration_seconds

    for _ in range(random.randint(1, 3)):
        farmer.list_produce()
        time.sleep(random.uniform(0.3, 0.8))

    while time.time() < end_time:
        action = random.choices(["restock", "advance", "list"], weights=[0.5, 0.4, 0.1])[0]
        if action == "restock":
            farmer.restock()
        elif action == "advance":
            farmer.advance_orders()
        else:
            farmer.list_produce()
        time.sleep(random.uniform(1, 3))


def buyer_session(user_id, duration_seconds, authenticated=True):
    """
    Simulate a buyer session

    Anonymous visitors only browse; registered buyers follow ACTION_WEIGHTS.
    """
    buyer = Participant(user_id, "buyer")
    end_time = time.time() + duration_seconds

    buyer.fetch_products()
    for _ in range(random.randint(2, 5)):
        buyer.browse_products()
        time.sleep(random.uniform(0.5, 1.5))

    if not authenticated:
        log(f"{buyer.label()}: Anonymous visitor - browsing only")
        while time.time() < end_time:
            random.choice([buyer.browse_products, buyer.search, buyer.view_market_prices])()
            time.sleep(random.uniform(0.3, 0.8))
        return

    if not buyer.register():
        return
    while time.time() < end_time:
        buyer.random_action()
        time.sleep(random.uniform(0.5, 1.5))


def generate_traffic(num_concurrent_users=5, session_duration=60):
    """Generate traffic with multiple concurrent users"""
    log(f"Starting traffic generation with {num_concurrent_users} concurrent users")
    log(f"Session duration: {session_duration} seconds")
    log(f"User mix: 20% farmers, 40% anonymous visitors, 40% buyers")

    threads = []

    try:
        while True:
            while len([t for t in threads if t.is_alive()]) < num_concurrent_users:
                user_id = random.randint(1000, 99999)

                rand = random.random()
                if rand < 0.20:
                    thread = threading.Thread(target=farmer_session, args=(user_id, session_duration))
                elif rand < 0.60:
                    thread = threading.Thread(target=buyer_session, args=(user_id, session_duration, False))
                else:
                    thread = threading.Thread(target=buyer_session, args=(user_id, session_duration, True))
                thread.start()
                threads.append(thread)

                time.sleep(random.uniform(1, 3))

            threads = [t for t in threads if t.is_alive()]
            time.sleep(5)

    except KeyboardInterrupt:
        log("\nStopping traffic generation...")
        log("Waiting for active sessions to complete...")
        for thread in threads:
            thread.join(timeout=10)
        log("Traffic generation stopped")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Generate traffic for the FarmDirect marketplace")
    parser.add_argument(
        "--users",
        type=int,
        default=5,
        help="Number of concurrent users (default: 5)"
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=60,
        help="Session duration in seconds (default: 60)"
    )
    parser.add_argument(
        "--url",
        type=str,
        default="http://localhost:8000",
        help="API URL (default: http://localhost:8000)"
    )

    args = parser.parse_args()
    API_URL = args.url

    log("=" * 60)
    log("FarmDirect Traffic Generator")
    log("=" * 60)
    log(f"API URL: {API_URL}")
    log(f"Concurrent Users: {args.users}")
    log(f"Session Duration: {args.duration}s")
    log("=" * 60)

    generate_traffic(args.users, args.duration)
