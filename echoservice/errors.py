# echoservice/errors.py


class ServiceError(Exception):
    """Fatal startup problem; the process exits non-zero."""

    exit_code = 1


class NoBindAddressError(ServiceError):
    pass


class ListenerStartupError(ServiceError):
    pass
