from fastapi.testclient import TestClient
from pydantic import BaseModel

from app.main import app
from app.core.exceptions import AuthenticationError, ResourceNotFoundError

client = TestClient(app)


class Item(BaseModel):
    name: str
    price: int


@app.post("/test-validation")
def create_item(item: Item):
    return item


@app.get("/test-custom-error")
def trigger_custom_error():
    raise ResourceNotFoundError(message="Item not found")


@app.get("/test-auth-error")
def trigger_auth_error():
    raise AuthenticationError("Invalid LINE signature")


def test_404_not_found():
    response = client.get("/non-existent-route")
    assert response.status_code == 404
    data = response.json()
    assert "error" in data
    assert "code" in data
    assert data["code"] == "HTTP_ERROR"


def test_validation_error_structure():
    response = client.post("/test-validation", json={"name": "foo", "price": "invalid"})
    assert response.status_code == 422
    data = response.json()
    assert data["code"] == "VALIDATION_ERROR"
    assert "details" in data
    assert len(data["details"]) > 0
    assert data["details"][0]["loc"][-1] == "price"


def test_custom_exception():
    response = client.get("/test-custom-error")
    assert response.status_code == 404
    data = response.json()
    assert data["code"] == "NOT_FOUND"
    assert data["error"] == "Item not found"


def test_authentication_error_is_401():
    response = client.get("/test-auth-error")
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid LINE signature"
