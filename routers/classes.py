from fastapi import APIRouter, Depends

from dependencies.security import get_backend_client
from services.backend_client import BackendClient

router = APIRouter(prefix="/classes", tags=["classes"])


# ✅ [SELECTOR] 로그인한 교사의 담당 반 목록 (반 선택 드롭다운용)
@router.get("/me")
async def read_my_classes(client: BackendClient = Depends(get_backend_client)):
    classes = await client.get_teacher_classes()
    return {
        "success": True,
        "data": [{"id": c.get("id"), "name": c.get("name")} for c in classes],
    }
