"""
Error taxonomy shared by the collaborators and the pipeline.

Model gaps (a region or incident field the model left out) are not errors:
the reconcile step fills them with defaults.
"""


class ConfigurationError(Exception):
    """A credential needed by one collaborator is missing."""

    def __init__(self, service):
        self.service = service
        super().__init__("{} key missing".format(service))


class TransportError(Exception):
    """Network, timeout or HTTP failure talking to a collaborator."""


class ModelUnavailable(TransportError):
    """The model transport could not be reached at all."""


class MalformedResponse(Exception):
    """Model output did not contain a parseable JSON object."""
