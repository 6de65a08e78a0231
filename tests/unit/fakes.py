# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Canned module proxy and module index served through httpx.MockTransport
"""

import json
from typing import Dict, List, Tuple

import httpx

PROXY_URL = "https://proxy.test"
INDEX_URL = "https://index.test/index"


def index_event(path: str, version: str, timestamp: str) -> dict:
    return {"Path": path, "Version": version, "Timestamp": timestamp}


class FakeUpstream:
    """Serves canned responses by path and records every request."""

    def __init__(self):
        self.routes: Dict[str, Tuple[int, bytes]] = {}
        self.requests: List[httpx.Request] = []
        self.index_events: List[dict] = []
        self.index_page_size = 2000
        # Status for index pages read from a watermark (None serves them).
        self.resume_status = None

    def add(self, path: str, body=b"", status: int = 200):
        if isinstance(body, (dict, list)):
            body = json.dumps(body)
        if isinstance(body, str):
            body = body.encode()
        self.routes[path] = (status, body)

    def add_module(
        self,
        path: str,
        versions: List[str],
        latest: str = None,
        mods: Dict[str, str] = None,
        times: Dict[str, str] = None
    ):
        """Register list, @latest, .mod and .info answers for one module."""
        self.add(f"/{path}/@v/list", "".join(v + "\n" for v in versions))
        if latest:
            self.add(f"/{path}/@latest", {"Version": latest, "Time": "2023-01-01T00:00:00Z"})
        else:
            self.add(f"/{path}/@latest", "not found", status=404)
        for v in set(versions) | ({latest} if latest else set()):
            self.add(f"/{path}/@v/{v}.mod", (mods or {}).get(v, f"module {path}\n\ngo 1.20\n"))
            self.add(f"/{path}/@v/{v}.info", {
                "Version": v,
                "Time": (times or {}).get(v, "2023-01-01T00:00:00Z"),
                "Origin": {"VCS": "git", "URL": f"https://{path}", "Ref": f"refs/tags/{v}"},
            })

    def count(self, path: str) -> int:
        return sum(1 for r in self.requests if r.url.path == path)

    def index_page(self, request: httpx.Request) -> httpx.Response:
        if self.resume_status is not None and "since" in request.url.params:
            return httpx.Response(self.resume_status, content=b"unavailable")
        since = request.url.params.get("since", "")
        limit = int(request.url.params.get("limit", self.index_page_size))
        page = [e for e in self.index_events if e["Timestamp"] >= since][:limit]
        body = "".join(json.dumps(e) + "\n" for e in page)
        return httpx.Response(200, content=body.encode())

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if f"{request.url.scheme}://{request.url.host}{request.url.path}" == INDEX_URL:
            return self.index_page(request)
        if request.url.path not in self.routes:
            return httpx.Response(404, content=b"not found")
        status, body = self.routes[request.url.path]
        return httpx.Response(status, content=body)
