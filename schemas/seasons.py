from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

# ✅ 입력용 (POST)
class SeasonCreate(BaseModel):
    name_en: str = Field(..., min_length=1)      # 영어 이름 (예: Season 1)
    name_ar: Optional[str] = None                # 아랍어 이름
    name_ku: Optional[str] = None                # 쿠르드어 이름
    aliases: List[str] = Field(default_factory=list)  # 레거시 코드
    description: Optional[str] = None
    order: int = Field(..., ge=1)                # 순서 (1부터)
    is_active: bool = True

# ✅ 부분 수정용 (PUT)
class SeasonUpdate(BaseModel):
    name_en: Optional[str] = Field(default=None, min_length=1)
    name_ar: Optional[str] = None
    name_ku: Optional[str] = None
    aliases: Optional[List[str]] = None
    description: Optional[str] = None
    order: Optional[int] = Field(default=None, ge=1)
    is_active: Optional[bool] = None

# ✅ 출력용
class Season(SeasonCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)
