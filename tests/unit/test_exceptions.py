"""Tests for the error hierarchy."""
from weibopy import (
    WeiboError,
    ValidationError,
    StorageIOError,
    UserNotFoundError,
    UnexpectedError,
    UnknownResponseError,
    UnknownResponseStatusError,
    UnknownResponseBodyError,
    ConnectionFailedError,
    ConnectionSocketError,
)


class TestExceptions:
    """Test suite for exception types."""

    def test_everything_is_a_weibo_error(self):
        """Test callers can catch one base class."""
        for error_type in (ValidationError, StorageIOError, UserNotFoundError, UnexpectedError,
                           UnknownResponseError, ConnectionFailedError):
            assert issubclass(error_type, WeiboError)

    def test_builtin_bases(self):
        """Test validation and storage errors keep their builtin meaning."""
        assert issubclass(ValidationError, ValueError)
        assert issubclass(StorageIOError, OSError)

    def test_unexpected_error(self):
        """Test the code and info are kept and shown."""
        error = UnexpectedError('UNEXP00032', 'attempts exhausted')

        assert error.code == 'UNEXP00032'
        assert error.info == 'attempts exhausted'
        assert 'UNEXP00032' in str(error)
        assert 'attempts exhausted' in str(error)

    def test_user_not_found(self):
        """Test the uid is named."""
        assert str(UserNotFoundError(123)) == "User with uid '123' does not exist"

    def test_unknown_response(self):
        """Test the raw response travels with the error."""
        raw = {'status': 418, 'body': 'teapot'}

        status_error = UnknownResponseStatusError(raw)
        body_error = UnknownResponseBodyError(raw)

        assert status_error.response is raw
        assert '418' in str(status_error)
        assert isinstance(body_error, UnknownResponseError)

    def test_connection_error(self):
        """Test the wrapped exception is kept."""
        cause = OSError('refused')
        error = ConnectionSocketError({'method': 'get', 'url': 'https://weibo.com'}, cause)

        assert error.wrapped_exception is cause
        assert error.request['url'] == 'https://weibo.com'
