"""
Fake external collaborators for controller and API tests.
"""


class FakeIssuer:
    """Returns queued results in order, repeating the last one; exceptions are raised."""

    def __init__(self, *results):
        self.results = list(results)
        self.names = []

    def create_invite_link(self, name: str) -> str:
        self.names.append(name)
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


class FakeScheduler:
    def __init__(self, error: Exception = None):
        self.calls = []
        self.error = error

    def schedule(self, request_id: str, delay_seconds: int = 0) -> None:
        if self.error is not None:
            raise self.error
        self.calls.append((request_id, delay_seconds))


class FakeNotifier:
    def __init__(self, result: bool = True):
        self.result = result
        self.calls = []

    def send(self, user_id: str, event_name: str, event_data: dict) -> bool:
        self.calls.append((user_id, event_name, event_data))
        return self.result
