import pytest

from fieldbind import CollectingSink, Constraint, Definition


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def sink():
    return CollectingSink()


@pytest.fixture
def address_definition(sink):
    """A definition with nested paths, one required field and one rule."""

    def configure(define, validate):
        define("name", required=True)
        define("age", type=int)
        define("address.city", required=True)
        define("address.zip", pattern=r"^\d{5}$")
        validate("adult", lambda m: (m.get("age") or 0) >= 18)

    return Definition(sink=sink).configure(configure)


@pytest.fixture
def required_constraint():
    return Constraint(required=True)
