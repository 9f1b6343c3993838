import pytest


class FakeDocument:
    """In-memory document provider that also acts as its own change notifier."""

    def __init__(self, text):
        self.text = text
        self.listeners = []
        self.replace_calls = []

    def get_text(self):
        return self.text

    def get_line_text(self, line):
        return self.text.split("\n")[line]

    def replace_range(self, start_line, end_line, new_text):
        lines = self.text.split("\n")
        if not 0 <= start_line <= end_line < len(lines):
            return False
        lines[start_line : end_line + 1] = new_text.split("\n")
        self.text = "\n".join(lines)
        self.replace_calls.append((start_line, end_line, new_text))
        self.notify()
        return True

    def subscribe(self, listener):
        self.listeners.append(listener)

        def unsubscribe():
            self.listeners.remove(listener)

        return unsubscribe

    def notify(self):
        for listener in list(self.listeners):
            listener({"document": self})

    def edit(self, text):
        """Simulate the user typing directly in the Markdown source."""
        self.text = text
        self.notify()


class FakeHandle:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.done = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    def __init__(self):
        self.handles = []

    def call_later(self, delay, callback):
        handle = FakeHandle(delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def active(self):
        return [h for h in self.handles if not h.cancelled and not h.done]

    def run_pending(self):
        for handle in self.active:
            handle.done = True
            handle.callback()


@pytest.fixture
def sample_doc():
    return FakeDocument("pre\n| A | B |\n|---|---|\n| 1 | 2 |\npost\n")


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def make_doc():
    return FakeDocument
