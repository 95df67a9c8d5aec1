from sqlalchemy import Enum as SAEnum


class CaseInsensitiveEnum(SAEnum):
    """Enum column stored by value that tolerates upper/mixed case input.

    Rows written by older clients (or by hand in the database console) may
    carry ``"PENDING"`` rather than ``"pending"``; both load as the same
    member.
    """

    def __init__(self, enum_cls, **kwargs):
        self._enum_cls = enum_cls
        self._enum_kwargs = kwargs.copy()
        kwargs.setdefault("values_callable", lambda enum: [e.value for e in enum])
        super().__init__(enum_cls, **kwargs)

    def adapt(self, impltype, **kw):
        return CaseInsensitiveEnum(self._enum_cls, **{**self._enum_kwargs, **kw})

    @staticmethod
    def _normalize(value):
        if isinstance(value, str):
            return value.lower()
        return value.value

    def bind_processor(self, dialect):
        parent = super().bind_processor(dialect)

        def process(value):
            if value is None:
                return None
            value = self._normalize(value)
            return parent(value) if parent else value

        return process

    def result_processor(self, dialect, coltype):
        parent = super().result_processor(dialect, coltype)

        def process(value):
            if value is None:
                return None
            if isinstance(value, str):
                value = value.lower()
            return parent(value) if parent else value

        return process
