from sqlalchemy import String, orm

from typing_extensions import Annotated

str32 = Annotated[str, 32]
str255 = Annotated[str, 255]


class Base(orm.DeclarativeBase):
    type_annotation_map = {
        str32: String(32),
        str255: String(255),
    }

# Upper bound of the Integer (int4) primary and foreign key columns.
ID_MAX = 2**31 - 1
