"""Unit tests for constructor metadata markers."""

from slim_di.domain import markers
from slim_di.domain.markers import do_not_inject, injectable_constructor


class TestDoNotInject:
    """Test cases for the do_not_inject decorator."""

    def test_marks_function(self):
        """Test that the decorated function is excluded and returned unchanged."""

        def __init__(self):
            pass

        decorated = do_not_inject(__init__)

        assert decorated is __init__
        assert markers.is_excluded(__init__)

    def test_marks_classmethod(self):
        """Test that classmethods are marked through their function."""

        class Service:
            @do_not_inject
            @classmethod
            def create(cls):
                return cls()

        member = vars(Service)["create"]
        assert markers.is_excluded(member)
        assert isinstance(Service.create(), Service)

    def test_unmarked_function(self):
        """Test that plain functions are not excluded."""

        def build():
            pass

        assert not markers.is_excluded(build)


class TestInjectableConstructor:
    """Test cases for the injectable_constructor decorator."""

    def test_marks_classmethod_with_priority(self):
        """Test that priority and constructor flag are recorded."""

        class Service:
            @injectable_constructor(priority=3)
            @classmethod
            def create(cls):
                return cls()

        member = vars(Service)["create"]
        assert markers.is_constructor(member)
        assert markers.priority_of(member) == 3

    def test_decorator_below_classmethod(self):
        """Test that the decorator also works when applied before classmethod."""

        class Service:
            @classmethod
            @injectable_constructor()
            def create(cls):
                return cls()

        member = vars(Service)["create"]
        assert markers.is_constructor(member)
        assert markers.priority_of(member) is None

    def test_priority_on_init(self):
        """Test that __init__ can carry a priority."""

        class Service:
            @injectable_constructor(priority=0)
            def __init__(self):
                pass

        assert markers.priority_of(Service.__init__) == 0

    def test_unmarked_member(self):
        """Test defaults for unmarked members."""

        def build():
            pass

        assert not markers.is_constructor(build)
        assert markers.priority_of(build) is None
