import unittest

from hamcrest import equal_to, is_, assert_that, is_not, calling, raises

from peerlink.support.mixins import CommonEqualityMixin


class Valued(CommonEqualityMixin):
    def __init__(self, a=None, b=None):
        self.a = a
        self.b = b


class OtherValued(CommonEqualityMixin):
    def __init__(self, a=None, b=None):
        self.a = a
        self.b = b


class CommonEqualityMixinTest(unittest.TestCase):

    def test_value_equivalence(self):
        e1 = Valued("123", 123)
        e2 = Valued("12" + "3", 123)
        assert_that(e1, is_(equal_to(e2)))
        assert_that(e1 == e2, is_(True))
        assert_that(e1 != e2, is_(False))

        e1.b = 0
        assert_that(e1, is_not(equal_to(e2)))
        assert_that(e1 != e2, is_(True))
        assert_that(e1 == e2, is_(False))

    def test_different_class_is_not_equal(self):
        assert_that(Valued(1, 2) == OtherValued(1, 2), is_(False))
        assert_that(Valued(1, 2) == (1, 2), is_(False))

    def test_recursive_comparison(self):
        e1 = Valued()
        e2 = Valued()
        e2.a = e1
        e1.a = e2

        def compare():
            return e2 == e1

        assert_that(calling(compare), raises(ValueError, "recursive comparison"))
