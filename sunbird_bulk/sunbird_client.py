#!/usr/bin/env python3
"""
sunbird_client.py - Thin client for the Sunbird content / course APIs

One method per remote operation. Each method performs exactly one HTTP
call through a shared requests.Session, sends the fixed headers
(Authorization, X-Channel-Id, x-authenticated-user-token) and either
returns the useful part of the response or raises RemoteAPIError.

Error bodies carry a structured message at params.errmsg; when present
it is kept on the exception and becomes the report reason.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import requests

from sunbird_bulk.auth import AuthSession
from sunbird_bulk.errors import RemoteAPIError, RemoteNotFoundError, extract_errmsg


logger = logging.getLogger(__name__)


class Routes:
    CREATE_CONTENT = "/api/content/v1/create"
    UPDATE_CONTENT = "/content/v3/update"
    REVIEW_CONTENT = "/content/v3/review"
    PUBLISH_CONTENT = "/content/v3/publish"
    SEARCH = "/api/composite/v1/search"
    CREATE_COLLECTION = "/api/collection/v1/create"
    CREATE_QUESTION = "/learning-service/assessment/v3/items/create"
    READ_QUESTION = "/api/assessment/v1/items/read"
    LIST_BATCH = "/api/course/v1/batch/list"
    ENROL = "/api/course/v1/enrol"


# Every status a piece of content can sit in; existence checks must see drafts too
SEARCH_STATUSES = [
    "Draft",
    "FlagDraft",
    "Review",
    "Processing",
    "Live",
    "Unlisted",
    "FlagReview",
]


@dataclass
class CreatedContent:
    identifier: str
    version_key: Optional[str] = None


class SunbirdClient:
    """Stateless wrapper around the remote API; auth lives in AuthSession"""

    def __init__(self, auth: AuthSession):
        self.auth = auth
        self.config = auth.config
        self.http = auth.http

    # ------------------------------------------------------------------
    # plumbing
    # ------------------------------------------------------------------

    def _headers(self, user_token: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Authorization": self.auth.authorization,
        }
        if self.config.channel_id:
            headers["X-Channel-Id"] = self.config.channel_id
        token = user_token or self.auth.user_token
        if token:
            headers["x-authenticated-user-token"] = token
        return headers

    def _call(
        self,
        method: str,
        route: str,
        body: Optional[Dict[str, Any]] = None,
        user_token: Optional[str] = None,
    ) -> Dict[str, Any]:
        url = f"{self.config.base_url}{route}"
        logger.debug(f"[api] {method} {route}")
        try:
            resp = self.http.request(
                method,
                url,
                json=body,
                headers=self._headers(user_token),
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            raise RemoteAPIError(
                message=f"{method} {route} failed: {e}",
                endpoint=route,
                cause=e,
            )

        if resp.status_code >= 400:
            errmsg = extract_errmsg(resp)
            raise RemoteAPIError(
                message=f"{method} {route} returned HTTP {resp.status_code}",
                status_code=resp.status_code,
                errmsg=errmsg,
                endpoint=route,
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise RemoteAPIError(
                message=f"{method} {route} returned a non-JSON body",
                status_code=resp.status_code,
                endpoint=route,
                cause=e,
            )

        if isinstance(data, dict) and data.get("responseCode") not in (None, "OK"):
            raise RemoteAPIError(
                message=f"{method} {route} responded {data.get('responseCode')}",
                status_code=resp.status_code,
                errmsg=extract_errmsg(resp),
                endpoint=route,
            )
        return data

    @staticmethod
    def _result(data: Dict[str, Any]) -> Dict[str, Any]:
        result = data.get("result") if isinstance(data, dict) else None
        return result if isinstance(result, dict) else {}

    # ------------------------------------------------------------------
    # search
    # ------------------------------------------------------------------

    def search(self, filters: Dict[str, Any], limit: Optional[int] = None) -> Dict[str, Any]:
        request: Dict[str, Any] = {
            "filters": {"status": SEARCH_STATUSES, **filters},
            "offset": 0,
            "query": "",
            "sort_by": {"lastUpdatedOn": "desc"},
        }
        if limit is not None:
            request["limit"] = limit
        return self._result(self._call("POST", Routes.SEARCH, {"request": request}))

    def find_content(self, code: str) -> Optional[Dict[str, Any]]:
        """
        Return the newest content / question created by us with this code,
        or None when nothing matches.
        """
        filters: Dict[str, Any] = {"code": code}
        if self.config.created_by:
            filters["createdBy"] = self.config.created_by
        result = self.search(filters, limit=1)
        if not result.get("count"):
            return None
        hits = result.get("content") or result.get("items") or []
        return hits[0] if hits else {"code": code}

    def search_course(self, course_code: str) -> Tuple[str, str]:
        """Resolve a course code to (identifier, name)."""
        filters: Dict[str, Any] = {
            "code": course_code,
            "primaryCategory": ["Course"],
            "objectType": "Content",
        }
        if self.config.created_by:
            filters["createdBy"] = self.config.created_by
        result = self.search(filters)
        courses = result.get("content") or []
        if not courses or not courses[0].get("identifier"):
            raise RemoteNotFoundError(
                message=f"Course not found for code: {course_code}",
                endpoint=Routes.SEARCH,
            )
        course = courses[0]
        return course["identifier"], course.get("name") or course_code

    # ------------------------------------------------------------------
    # content lifecycle
    # ------------------------------------------------------------------

    def create_collection(self, collection: Dict[str, Any]) -> CreatedContent:
        data = self._call("POST", Routes.CREATE_COLLECTION, {"request": {"collection": collection}})
        return self._created(data, Routes.CREATE_COLLECTION)

    def create_content(self, content: Dict[str, Any]) -> CreatedContent:
        data = self._call("POST", Routes.CREATE_CONTENT, {"request": {"content": content}})
        return self._created(data, Routes.CREATE_CONTENT)

    def _created(self, data: Dict[str, Any], route: str) -> CreatedContent:
        result = self._result(data)
        identifier = result.get("content_id") or result.get("identifier") or result.get("node_id")
        if not identifier:
            raise RemoteAPIError(message="Create response has no identifier", endpoint=route)
        return CreatedContent(identifier=identifier, version_key=result.get("versionKey"))

    def update_content(self, identifier: str, content: Dict[str, Any]) -> Dict[str, Any]:
        route = f"{Routes.UPDATE_CONTENT}/{identifier}"
        return self._result(self._call("PATCH", route, {"request": {"content": content}}))

    def review_content(self, identifier: str) -> Dict[str, Any]:
        route = f"{Routes.REVIEW_CONTENT}/{identifier}"
        return self._result(self._call("POST", route, {"request": {"content": {}}}))

    def publish_content(self, identifier: str) -> Dict[str, Any]:
        route = f"{Routes.PUBLISH_CONTENT}/{identifier}"
        body = {"request": {"content": {"lastPublishedBy": self.config.created_by or ""}}}
        return self._result(self._call("POST", route, body))

    # ------------------------------------------------------------------
    # questions
    # ------------------------------------------------------------------

    def create_question(self, item: Dict[str, Any]) -> str:
        data = self._call("POST", Routes.CREATE_QUESTION, {"request": {"assessment_item": item}})
        result = self._result(data)
        node_id = result.get("node_id") or result.get("identifier")
        if not node_id:
            raise RemoteAPIError(message="Question create response has no node_id", endpoint=Routes.CREATE_QUESTION)
        return node_id

    def read_assessment_item(self, identifier: str) -> Dict[str, Any]:
        route = f"{Routes.READ_QUESTION}/{identifier}"
        item = self._result(self._call("GET", route)).get("assessment_item")
        if not item:
            raise RemoteNotFoundError(message=f"Assessment item {identifier} not found", endpoint=route)
        return item

    # ------------------------------------------------------------------
    # courses and enrollment
    # ------------------------------------------------------------------

    def list_batches(self, course_id: str) -> List[Dict[str, Any]]:
        body = {
            "request": {
                "filters": {"status": "1", "courseId": course_id, "enrollmentType": "open"},
                "sort_by": {"createdDate": "desc"},
            }
        }
        response = self._result(self._call("POST", Routes.LIST_BATCH, body)).get("response") or {}
        return response.get("content") or []

    def first_open_batch(self, course_id: str) -> Optional[str]:
        batches = self.list_batches(course_id)
        return batches[0].get("id") if batches else None

    def enrol(self, course_id: str, batch_id: str, user_id: str, access_token: str) -> Dict[str, Any]:
        body = {"request": {"courseId": course_id, "batchId": batch_id, "userId": user_id}}
        return self._result(self._call("POST", Routes.ENROL, body, user_token=access_token))
