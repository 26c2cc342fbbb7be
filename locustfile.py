"""
Load profile for the PawFund API.

    locust -f locustfile.py --host=http://127.0.0.1:5050
    locust -f locustfile.py --host=http://127.0.0.1:5050 --users 20 --spawn-rate 4 --run-time 2m --headless

Visitors browse anonymously. Donors log in with LOCUST_DONOR_EMAIL /
LOCUST_DONOR_PASSWORD and poll their inbox and history; they only post
donations when LOCUST_DONATE=1, since every donation is a real write.
"""

import os
import uuid

from locust import HttpUser, between, task


class Visitor(HttpUser):
    weight = 3
    wait_time = between(1, 4)

    def on_start(self):
        self.case_ids = []
        resp = self.client.get("/api/cases", name="/api/cases")
        if resp.status_code == 200:
            self.case_ids = [c["id"] for c in resp.json()][:20]

    @task(8)
    def cases(self):
        self.client.get("/api/cases", name="/api/cases")

    @task(6)
    def progress(self):
        if self.case_ids:
            cid = self.case_ids[hash(self) % len(self.case_ids)]
            self.client.get(f"/api/cases/{cid}/progress", name="/api/cases/[id]/progress")

    @task(4)
    def adoptions(self):
        self.client.get("/api/adoptions?status=available", name="/api/adoptions")

    @task(2)
    def stories(self):
        self.client.get("/api/case-updates/success-stories")

    @task(1)
    def emergencies(self):
        self.client.get("/api/emergency/public")


class Donor(HttpUser):
    weight = 1
    wait_time = between(2, 5)

    def on_start(self):
        self.headers = {}
        email = os.getenv("LOCUST_DONOR_EMAIL")
        password = os.getenv("LOCUST_DONOR_PASSWORD")
        if not (email and password):
            return
        resp = self.client.post(
            "/api/auth/login", json={"email": email, "password": password, "role": "donor"}
        )
        if resp.status_code == 200:
            self.headers = {"Authorization": f"Bearer {resp.json()['access_token']}"}

    @task(4)
    def inbox(self):
        if self.headers:
            self.client.get("/api/donor/messages", headers=self.headers)

    @task(2)
    def history(self):
        if self.headers:
            self.client.get("/api/donor/donations/history", headers=self.headers)

    @task(1)
    def donate(self):
        case_id = os.getenv("LOCUST_CASE_ID")
        if not (self.headers and case_id and os.getenv("LOCUST_DONATE") == "1"):
            return
        self.client.post(
            "/api/donor/donate",
            json={"caseId": case_id, "amount": 0.001, "txHash": f"0x{uuid.uuid4().hex}"},
            headers=self.headers,
            name="/api/donor/donate",
        )
