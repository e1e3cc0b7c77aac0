import pytest

from blockstatus.segment import Command, SegmentSpec


class ListPublisher(object):
    def __init__(self):
        self.published = []

    def publish(self, text):
        self.published.append(text)

    def close(self):
        pass

    @property
    def last(self):
        return self.published[-1]


@pytest.fixture
def publisher():
    return ListPublisher()


def constant(index, text, **kwargs):
    return SegmentSpec(index, Command.constant(text), **kwargs)


def program(index, path, *args, **kwargs):
    return SegmentSpec(index, Command.program(path, args), **kwargs)
