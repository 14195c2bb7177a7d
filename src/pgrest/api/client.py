"""HTTP client for an endpoint generated by pgrest."""

import json
from typing import Any, Dict, List, Optional, Union

import httpx


class ApiError(Exception):
    """Error envelope returned by the API, re-raised on the client side."""

    def __init__(
        self,
        name: str,
        message: Optional[str] = None,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message or name)
        self.name = name
        self.message = message
        self.code = code
        self.status_code = status_code


class ApiClient:
    """
    Client for one entity endpoint.

    Args:
        endpoint: Base path or URL of the entity, e.g. ``http://host/api/1.0/sessions``
        client: httpx client to send requests with (a FastAPI ``TestClient`` works too)
        headers: Extra headers sent with every request
    """

    def __init__(
        self,
        endpoint: str,
        client: Optional[httpx.Client] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.client = client or httpx.Client()
        self.headers = headers or {}

    def create(self, body: Union[Dict[str, Any], List[Dict[str, Any]]]) -> Any:
        return self._request("POST", self.endpoint, json=body)

    def find_one(self, id: Any, columns: Optional[List[str]] = None) -> Any:
        params = {"columns": ",".join(columns)} if columns else None
        return self._request("GET", f"{self.endpoint}/{id}", params=params)

    def find_many(
        self,
        filter: Optional[Dict[str, Any]] = None,
        sort: Optional[Dict[str, int]] = None,
        pagination: Optional[Dict[str, int]] = None,
        columns: Optional[List[str]] = None,
    ) -> Any:
        params = {
            "filter": json.dumps(filter or {}),
            "sort": json.dumps(sort or {}),
        }
        if pagination:
            params["pagination"] = json.dumps(pagination)
        if columns:
            params["columns"] = ",".join(columns)
        return self._request("GET", self.endpoint, params=params)

    def update_one(self, id: Any, body: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PATCH", f"{self.endpoint}/{id}", json=body)

    def update_many(self, filter: Dict[str, Any], body: Dict[str, Any]) -> Dict[str, Any]:
        return self._request(
            "PATCH", self.endpoint, json=body, params={"filter": json.dumps(filter)}
        )

    def delete_one(self, id: Any) -> Dict[str, Any]:
        return self._request("DELETE", f"{self.endpoint}/{id}")

    def delete_many(self, filter: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("DELETE", self.endpoint, params={"filter": json.dumps(filter)})

    def get_schema(self) -> Dict[str, Any]:
        return self._request("GET", f"{self.endpoint}/schema")

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        response = self.client.request(method, url, headers=self.headers, **kwargs)
        try:
            body = response.json()
        except ValueError:
            response.raise_for_status()
            raise ApiError("InvalidResponse", response.text[:200], status_code=response.status_code)

        if not isinstance(body, dict):
            response.raise_for_status()
            return body

        error = body.get("error")
        if error:
            raise ApiError(
                name=error.get("name", "Error"),
                message=error.get("message"),
                code=error.get("code"),
                status_code=response.status_code,
            )
        response.raise_for_status()

        # Mutations report how many rows they touched
        if isinstance(body.get("rowCount"), int):
            return {"data": body.get("data"), "rowCount": body["rowCount"]}
        return body.get("data")
