"""
HTTP client for the JudgeArena API, plus the ``judgearena-submit`` command.
"""

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from .utils.logger_config import get_logger, setup_logging

logger = get_logger("client")


class ContestClientError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ContestClient:
    """Thin wrapper around the contest server's HTTP API"""

    def __init__(self, api_base: str = "http://localhost:8080", session: Optional[requests.Session] = None, timeout: float = 30):
        self.api_base = api_base.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.token: Optional[str] = None
        self.name: Optional[str] = None

    def _headers(self) -> Dict[str, str]:
        if self.token is None:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def _request(self, method: str, path: str, json: Optional[Dict] = None) -> requests.Response:
        url = f"{self.api_base}{path}"
        try:
            return self.session.request(method, url, json=json, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            raise ContestClientError(f"Unable to reach {self.api_base}: {e}") from e

    def _call(self, method: str, path: str, json: Optional[Dict] = None) -> Any:
        """Send a request and unwrap the standard response envelope"""
        response = self._request(method, path, json)
        try:
            body = response.json()
        except ValueError as e:
            raise ContestClientError(f"Invalid response from {path}", response.status_code) from e

        if response.status_code >= 400 or body.get("status") == "error":
            raise ContestClientError(body.get("message", f"HTTP {response.status_code}"), response.status_code)
        return body.get("data")

    # Sessions

    def login(self, username: str, password: str, role: str = "participant") -> Dict:
        data = self._call("POST", "/api/login", {"username": username, "password": password, "role": role})
        self.token = data["token"]
        self.name = data["name"]
        logger.info(f"Logged in as {self.name} ({role})")
        return data

    def logout(self) -> None:
        self._call("POST", "/api/logout")
        self.token = None

    # Participant

    def list_problems(self) -> List[Dict]:
        return self._call("GET", "/api/problems")

    def status(self, name: Optional[str] = None) -> Dict:
        return self._call("GET", f"/api/status/{name or self.name}")

    def submit(self, problem_id: str, code: str) -> Dict:
        """Submit source code; returns ``{"success": bool, "message": str}``"""
        response = self._request("POST", "/api/submit", {"problemId": problem_id, "code": code})
        try:
            body = response.json()
        except ValueError as e:
            raise ContestClientError("Invalid response from /api/submit", response.status_code) from e
        if "success" not in body:
            raise ContestClientError(body.get("message", f"HTTP {response.status_code}"), response.status_code)
        return body

    def alerts(self) -> List[Dict]:
        return self._call("GET", "/api/alerts")

    def rankings(self) -> List[Dict]:
        return self._call("GET", "/api/rankings")

    def contest_state(self) -> str:
        return self._call("GET", "/api/contest/state")["state"]

    # Admin

    def dashboard(self) -> Dict:
        return self._call("GET", "/api/dashboard")

    def set_contest_state(self, state: str) -> str:
        return self._call("POST", "/api/contest/state", {"state": state})["state"]

    def reset_contest(self) -> None:
        self._call("POST", "/api/contest/reset")

    def finalize_rankings(self) -> List[Dict]:
        return self._call("POST", "/api/rankings/finalize")

    def create_problem(self, title: str, description: str = "", input_spec: str = "", output_spec: str = "",
                       test_cases: Optional[List[Dict]] = None) -> Dict:
        return self._call("POST", "/api/problems", {
            "title": title,
            "description": description,
            "input": input_spec,
            "output": output_spec,
            "testCases": test_cases or [],
        })

    def delete_problem(self, problem_id: str) -> None:
        self._call("DELETE", f"/api/problems/{problem_id}")

    def kick(self, name: str) -> None:
        self._call("DELETE", f"/api/users/{name}")


def main(argv: Optional[List[str]] = None) -> int:
    """Submit a C source file to a running contest server"""
    parser = argparse.ArgumentParser(description='Submit a solution to a JudgeArena server')
    parser.add_argument('source', help='Path to the C source file')
    parser.add_argument('--problem', required=True, help='Problem id, e.g. p1')
    parser.add_argument('--user', required=True, help='Participant name')
    parser.add_argument('--password', required=True, help='Participant password')
    parser.add_argument('--server', default='http://localhost:8080', help='Server base URL')
    parser.add_argument('--keep-session', action='store_true', help='Do not log out after submitting')
    args = parser.parse_args(argv)

    setup_logging(level="WARNING")

    try:
        code = Path(args.source).read_text(encoding="utf-8")
    except OSError as e:
        print(f"Cannot read {args.source}: {e}", file=sys.stderr)
        return 2

    client = ContestClient(args.server)
    try:
        client.login(args.user, args.password)
        result = client.submit(args.problem, code)
        if not args.keep_session:
            client.logout()
    except ContestClientError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    print(result["message"])
    return 0 if result["success"] else 1


if __name__ == "__main__":
    sys.exit(main())
