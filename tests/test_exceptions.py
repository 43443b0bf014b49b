import pytest

from multicloud_gateway.core.exceptions import (
    AccessDeniedError,
    ConfigurationError,
    GatewayError,
    ImageProcessingError,
    InvocationError,
    MalformedEventError,
    NoActiveTransactionError,
    NotConnectedError,
    NotFoundError,
    QueryError,
    TransactionStateError,
    TransportError,
    image_error_handler,
)


@pytest.mark.parametrize(
    "error_type",
    [
        AccessDeniedError,
        ConfigurationError,
        ImageProcessingError,
        InvocationError,
        MalformedEventError,
        NoActiveTransactionError,
        NotConnectedError,
        NotFoundError,
        QueryError,
        TransactionStateError,
        TransportError,
    ],
)
def test_every_error_is_a_gateway_error(error_type) -> None:
    with pytest.raises(GatewayError):
        raise error_type("boom")


def test_image_error_handler_wraps_foreign_errors() -> None:
    with pytest.raises(ImageProcessingError, match="ValueError: bad pixels") as excinfo:
        with image_error_handler("images/cat.png"):
            raise ValueError("bad pixels")
    assert isinstance(excinfo.value.__cause__, ValueError)


def test_image_error_handler_keeps_gateway_errors() -> None:
    with pytest.raises(NotFoundError):
        with image_error_handler("images/cat.png"):
            raise NotFoundError("gone")


def test_image_error_handler_passes_through_on_success() -> None:
    with image_error_handler("images/cat.png"):
        value = 1
    assert value == 1
