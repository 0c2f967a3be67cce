from .fakes import FakeDataSource, QueryCall

__all__ = ["FakeDataSource", "QueryCall"]
