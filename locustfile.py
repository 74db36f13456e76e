from locust import HttpUser, task, between
import random

# Sample wallets for ticket / winner lookups
wallets = [
    "0x1234567890123456789012345678901234567890",
    "0x71C7656EC7ab88b098defB751B7401B5f6d8976F",
    "0xAb5801a7D398351b8bE11C439e05C5B3259aeC9B",
]

usdc = {
    "address": "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48",
    "symbol": "USDC",
    "decimals": 6,
    "balance": "50000000",
}

class AlpacaLottoUser(HttpUser):
    wait_time = between(1, 2)

    @task(3)
    def lotteries(self):
        self.client.get("/api/lotteries")

    @task(2)
    def active_lotteries(self):
        self.client.get("/api/lotteries/active")

    @task
    def lottery_detail(self):
        lottery_id = random.randint(1, 4)
        self.client.get(f"/api/lottery/{lottery_id}", name="/api/lottery/[id]")

    @task
    def user_tickets(self):
        lottery_id = random.randint(1, 4)
        self.client.get(
            f"/api/lottery/{lottery_id}/tickets/{random.choice(wallets)}",
            name="/api/lottery/[id]/tickets/[address]",
        )

    @task
    def optimize_token(self):
        self.client.post("/api/optimize-token", json={"tokens": [usdc]})
