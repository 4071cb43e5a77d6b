"""Error taxonomy for the command pipeline."""


class PhonePilotError(Exception):
    """Base class for every pipeline error."""


class ConfigurationError(PhonePilotError):
    """A required setting (e.g. the API key) is missing. No network call was made."""


class PlannerError(PhonePilotError):
    """The planner round trip did not produce a usable payload."""


class PlannerRequestError(PlannerError):
    """Transport failure or non-2xx status from the planner endpoint."""


class EmptyResponseError(PlannerError):
    """The planner answered without any choice or content."""


class MalformedResponseError(PlannerError):
    """The structural envelope of the planner output could not be parsed."""


class HostUnavailableError(PhonePilotError):
    """The action host has not published a screen snapshot yet."""


class EngineStateError(PhonePilotError):
    """An ExecutionEngine was asked to run more than once."""


class ExecutionError(PhonePilotError):
    """An action could not be carried out; stops the remaining sequence."""


class ElementNotFound(ExecutionError):
    def __init__(self, element_id: str) -> None:
        super().__init__(f"Element not found: {element_id}")
        self.element_id = element_id


class NoTargetSpecified(ExecutionError):
    def __init__(self) -> None:
        super().__init__("No target specified")


class NoEditableFieldFound(ExecutionError):
    def __init__(self) -> None:
        super().__init__("No editable field found")


class HostDispatchFailed(ExecutionError):
    """The host primitive reported failure or raised."""


class ActionDecodeWarning(UserWarning):
    """A single planner action item was dropped; decoding continues."""
