class GrabPushError(Exception):
    pass


class SourceInitError(GrabPushError):
    pass


class OutputInitError(GrabPushError):
    pass


class OutputEmitError(GrabPushError):
    pass


class ValidationError(GrabPushError):
    pass


class ConfigurationError(GrabPushError):
    pass
