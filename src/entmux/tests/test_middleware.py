import unittest
from dataclasses import asdict, dataclass
from typing import Any

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from entmux.errors import InvalidEmbeddedPayloadError, MuxContextNotFoundError
from entmux.meta.tags import efield
from entmux.mux.middleware import CreationMiddleware, isolate
from entmux.mux.registry import create
from entmux.store.base import Collection, Store


class _NullStore(Store):
    def collection(self, name: str) -> Collection:
        coll = Collection()
        coll.name = name
        return coll


@dataclass
class TaskDetails:
    date: str = efield(json="date", id="task-details", handle="c", default="")


@dataclass
class Task:
    name: str = efield(json="name", id="task", handle="c", default="")
    details: TaskDetails = efield(json="details", handle="c", default_factory=TaskDetails)


@dataclass
class SampleUser:
    id: str = efield(json="-", bson="_id", id="user", default="")
    name: str = efield(json="name", handle="c", default="")
    email: str = efield(json="email", handle="c", default="")


def _describe(request: Request, entity_id: str) -> dict[str, Any]:
    try:
        ctx = isolate(request)
    except MuxContextNotFoundError:
        return {"context": False}
    value: Any = ctx.retrieve(entity_id)
    error = ctx.error
    return {
        "context": True,
        "value": asdict(value) if value is not None else None,
        "error": type(error).__name__ if error is not None else None,
    }


async def user_endpoint(request: Request) -> JSONResponse:
    return JSONResponse(_describe(request, "user"))


async def task_endpoint(request: Request) -> JSONResponse:
    return JSONResponse(_describe(request, "task"))


async def echo_endpoint(request: Request) -> JSONResponse:
    body = await request.json()
    return JSONResponse({"body": body, **_describe(request, "user")})


def _app() -> Starlette:
    registry = create(_NullStore(), SampleUser, Task, TaskDetails)
    app = Starlette(
        routes=[
            Route("/users", user_endpoint, methods=["GET", "POST"]),
            Route("/tasks", task_endpoint, methods=["POST"]),
            Route("/echo", echo_endpoint, methods=["POST"]),
        ]
    )
    app.add_middleware(
        CreationMiddleware,
        registry=registry,
        routes={"/users": "user", "/tasks": "task", "/echo": "user"},
    )
    return app


class TestCreationMiddleware(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(_app())

    def test_decoded_entity_available_to_handler(self) -> None:
        resp = self.client.post("/users", json={"name": "Dummy UserEmbed", "email": "dummy@user.com"})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertTrue(data["context"])
        self.assertIsNone(data["error"])
        self.assertEqual(
            data["value"],
            {"id": "", "name": "Dummy UserEmbed", "email": "dummy@user.com"},
        )

    def test_embedded_payload(self) -> None:
        resp = self.client.post(
            "/tasks",
            content='{"name":"test task", "details":{"date":"ISO_DUMMY_DATE"}}',
            headers={"content-type": "application/json"},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(
            resp.json()["value"],
            {"name": "test task", "details": {"date": "ISO_DUMMY_DATE"}},
        )

    def test_malformed_json_is_bad_request(self) -> None:
        resp = self.client.post(
            "/users", content="{not json", headers={"content-type": "application/json"}
        )
        self.assertEqual(resp.status_code, 400)
        self.assertIn("Malformed JSON", resp.json()["detail"])

    def test_empty_body_is_bad_request(self) -> None:
        resp = self.client.post("/users")
        self.assertEqual(resp.status_code, 400)

    def test_decode_error_lands_in_error_slot(self) -> None:
        resp = self.client.post("/users", json=["not", "an", "object"])
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["error"], InvalidEmbeddedPayloadError.__name__)
        self.assertEqual(data["value"], {"id": "", "name": "", "email": ""})

    def test_field_error_lands_in_error_slot(self) -> None:
        resp = self.client.post("/users", json={"name": 12, "email": "e@x.com"})
        data = resp.json()
        self.assertEqual(data["error"], "InvalidDataTypeError")
        self.assertEqual(data["value"]["email"], "e@x.com")

    def test_unmatched_method_skips_decoding(self) -> None:
        resp = self.client.get("/users")
        self.assertEqual(resp.json(), {"context": False})

    def test_body_still_readable_downstream(self) -> None:
        resp = self.client.post("/echo", json={"name": "n"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["body"], {"name": "n"})
        self.assertEqual(resp.json()["value"]["name"], "n")


if __name__ == "__main__":
    unittest.main()
