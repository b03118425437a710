from sqlalchemy import Column, Integer, String
from database.db import Base

class Part(Base):
    __tablename__ = "parts"  # 단원 하위 파트 테이블

    id = Column(Integer, primary_key=True, index=True)           # 파트 고유 ID
    title = Column(String(200), nullable=False)                 # 파트 제목
    chapter_id = Column(Integer, nullable=False, index=True)    # 단원 ID
    order = Column(Integer, nullable=False, default=1)          # 단원 내 순서
