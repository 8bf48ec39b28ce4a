#!/usr/bin/env python3
"""
End-to-end smoke run against a live SmartQR server.

Walks the main flow over HTTP and reports every step:

  owner login -> hospital self-registration -> pending login refused ->
  owner approves -> admin login -> create patient -> public QR lookup ->
  QR image download -> delete patient

Usage::

    python manage.py migrate && python manage.py runserver
    SMOKE_BASE_URL=http://127.0.0.1:8000 python smoke_api.py

The owner credentials default to the bootstrap values in settings.
"""
import os
import secrets
import sys
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

BASE_URL = os.getenv("SMOKE_BASE_URL", "http://127.0.0.1:8000").rstrip("/")
OWNER_EMAIL = os.getenv("SUPER_ADMIN_EMAIL", "owner@smartqr.com")
OWNER_PASSWORD = os.getenv("SUPER_ADMIN_PASSWORD", "admin123")


@dataclass
class StepResult:
    success: bool
    step: str
    method: str
    endpoint: str
    status_code: int
    response_time: float
    error_message: str = ""


class SmokeRun:
    def __init__(self) -> None:
        self.session = requests.Session()
        self.results: List[StepResult] = []

    def call(self, step: str, method: str, endpoint: str, *, token: Optional[str] = None,
             json: Optional[Dict[str, Any]] = None, expected_status: int = 200) -> Optional[requests.Response]:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        start = time.time()
        try:
            response = self.session.request(method, f"{BASE_URL}{endpoint}", json=json, headers=headers, timeout=10)
        except requests.RequestException as e:
            self._record(StepResult(False, step, method, endpoint, 0, time.time() - start, str(e)))
            return None
        ok = response.status_code == expected_status
        self._record(StepResult(
            ok, step, method, endpoint, response.status_code, time.time() - start,
            "" if ok else response.text[:200],
        ))
        return response

    def _record(self, result: StepResult) -> None:
        self.results.append(result)
        mark = "ok  " if result.success else "FAIL"
        line = f"[{mark}] {result.step}: {result.method} {result.endpoint} -> {result.status_code} ({result.response_time:.2f}s)"
        if result.error_message:
            line += f"\n       {result.error_message}"
        print(line)

    def login(self, step: str, email: str, password: str, expected_status: int = 200) -> Optional[str]:
        r = self.call(step, "POST", "/api/auth/login", json={"email": email, "password": password},
                      expected_status=expected_status)
        if r is not None and r.status_code == 200:
            return r.json()["token"]
        return None

    def run(self) -> bool:
        self.call("health", "GET", "/api/health")
        owner = self.login("owner login", OWNER_EMAIL, OWNER_PASSWORD)
        if not owner:
            return self.report()

        suffix = secrets.token_hex(4)
        admin_email = f"admin-{suffix}@smoke.test"
        r = self.call("register hospital", "POST", "/api/hospitals/register", expected_status=201, json={
            "name": f"Smoke General {suffix}",
            "email": f"contact-{suffix}@smoke.test",
            "adminName": "Smoke Admin",
            "adminEmail": admin_email,
            "adminPassword": "secret1",
        })
        if r is None or r.status_code != 201:
            return self.report()
        hospital_id = r.json()["hospital"]["id"]

        self.login("pending login refused", admin_email, "secret1", expected_status=403)
        self.call("approve hospital", "PATCH", f"/api/hospitals/{hospital_id}/approve", token=owner)
        admin = self.login("admin login", admin_email, "secret1")
        if not admin:
            return self.report()

        r = self.call("create patient", "POST", "/api/patients", token=admin, expected_status=201, json={
            "fullName": "Jane Roe",
            "age": 40,
            "gender": "Female",
            "bloodGroup": "O-",
            "allergies": ["Penicillin"],
            "emergencyContact": {"name": "Bob", "phone": "+1 555 0100"},
        })
        if r is None or r.status_code != 201:
            return self.report()
        patient = r.json()["patient"]

        r = self.call("public lookup", "GET", f"/api/public/patient/{patient['qrToken']}")
        if r is not None and r.status_code == 200 and "hospital" in r.json()["patient"]:
            self._record(StepResult(False, "public view leaks hospital", "GET", "", r.status_code, 0))
        self.call("unknown token", "GET", "/api/public/patient/does-not-exist", expected_status=404)
        self.call("QR image", "GET", patient["qrCodeUrl"])
        self.call("delete patient", "DELETE", f"/api/patients/{patient['id']}", token=admin)
        return self.report()

    def report(self) -> bool:
        failed = [r for r in self.results if not r.success]
        print(f"\n{len(self.results) - len(failed)}/{len(self.results)} steps passed")
        return not failed


if __name__ == "__main__":
    sys.exit(0 if SmokeRun().run() else 1)
