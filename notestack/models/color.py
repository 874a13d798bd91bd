from sqlalchemy import Column, Integer, String
from notestack.database import Base


class Color(Base):
    __tablename__ = "colors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    hex_code = Column(String(7), nullable=False)  # "#RRGGBB"
