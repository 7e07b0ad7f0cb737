class ValueMixin:
    """
    A value object. Its fields are listed in _fields, assigned once through _init_fields(), and
    then frozen. Instances compare and hash by the values of their fields.
    """
    _fields = ()

    def _init_fields(self, *values):
        for name, value in zip(self._fields, values):
            object.__setattr__(self, name, value)

    def __setattr__(self, key, value):
        raise AttributeError("%s is immutable" % type(self).__name__)

    def __delattr__(self, key):
        raise AttributeError("%s is immutable" % type(self).__name__)

    def _values(self):
        return tuple(getattr(self, name) for name in self._fields)

    def __eq__(self, other):
        return isinstance(other, self.__class__) and self._values() == other._values()

    def __ne__(self, other):
        return not self.__eq__(other)

    def __hash__(self):
        return hash((type(self).__name__,) + self._values())

    def __repr__(self):
        """
        >>> class Point(ValueMixin):
        ...     _fields = ('x', 'y')
        ...     def __init__(self, x, y):
        ...         self._init_fields(x, y)
        >>> Point(1, 'a')
        Point(x=1, y='a')
        """
        return "%s(%s)" % (type(self).__name__,
                           ", ".join("%s=%r" % (name, getattr(self, name)) for name in self._fields))
