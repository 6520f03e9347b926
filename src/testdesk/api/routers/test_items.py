from typing import List, Optional
from urllib.parse import quote
from fastapi import APIRouter, HTTPException, Depends, UploadFile, File, Query
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger
from testdesk.api.dependencies import get_current_user
from testdesk.api.models.base import ResponseModel
from testdesk.api.models.enums import TestResult
from testdesk.api.models.test_item import TestItemCreate, TestItemUpdate, TestItemInfo, ImportResult
from testdesk.api.services.errors import NotFoundError
from testdesk.api.services.project import ProjectService
from testdesk.api.services.spreadsheet import SpreadsheetService
from testdesk.api.services.test_item import TestItemService, FILE_KINDS
from testdesk.db.models import User
from testdesk.db.session import get_db
from testdesk.spreadsheet import SpreadsheetImportError, XLSX_MEDIA_TYPE
from testdesk.storage.storage import get_storage_service

router = APIRouter(tags=["test-items"])

def _import_failure(errors: List[str]) -> JSONResponse:
    """导入失败: message 为换行拼接的错误, data.errors 为错误列表"""
    return JSONResponse(
        status_code=400,
        content=ResponseModel(
            code=400,
            message="\n".join(errors),
            data={"errors": errors}
        ).model_dump()
    )

@router.get("/api/test-items")
async def list_all_test_items(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ResponseModel[List[TestItemInfo]]:
    """获取当前用户全部项目的测试项"""
    items = await TestItemService.list_all(current_user.id, db)
    return ResponseModel(data=[TestItemInfo.model_validate(i) for i in items])

@router.get("/api/projects/{project_id}/test-items")
async def list_test_items(
    project_id: str,
    result: Optional[TestResult] = Query(None, description="按测试结果过滤"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ResponseModel[List[TestItemInfo]]:
    """获取项目的测试项列表"""
    try:
        await ProjectService.get_project(project_id, db, current_user.id)
        items = await TestItemService.list_by_project(
            project_id, db, result.value if result is not None else None
        )
        return ResponseModel(data=[TestItemInfo.model_validate(i) for i in items])
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

@router.post("/api/projects/{project_id}/test-items")
async def create_test_item(
    project_id: str,
    request: TestItemCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ResponseModel[TestItemInfo]:
    """添加测试项"""
    try:
        await ProjectService.get_project(project_id, db, current_user.id)
        data = request.model_dump(exclude_none=True, mode="json")
        item = await TestItemService.create_test_item(project_id, data, db)
        return ResponseModel(
            message="시험항목이 추가되었습니다",
            data=TestItemInfo.model_validate(item)
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"添加测试项失败: {str(e)}")
        raise HTTPException(status_code=500, detail="시험항목 추가에 실패했습니다")

@router.get("/api/projects/{project_id}/test-items/export")
async def export_test_items(
    project_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> Response:
    """导出项目测试项为 Excel 文件"""
    try:
        content, filename = await SpreadsheetService.export_project_items(project_id, db, current_user.id)
        return Response(
            content=content,
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"}
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"导出测试项失败: {str(e)}")
        raise HTTPException(status_code=500, detail="시험항목 내보내기에 실패했습니다")

@router.post("/api/projects/{project_id}/test-items/import")
async def import_test_items(
    project_id: str,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ResponseModel[ImportResult]:
    """从 Excel/CSV 文件导入测试项, 任意一行出错时不导入任何数据"""
    try:
        await ProjectService.get_project(project_id, db, current_user.id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    try:
        temp_path = SpreadsheetService.save_temp_upload(file)
        items = await SpreadsheetService.import_test_items(project_id, temp_path, file.filename, db)
    except SpreadsheetImportError as e:
        return _import_failure(e.errors)
    except ValueError as e:
        return _import_failure([str(e)])
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return ResponseModel(
        message=f"{len(items)}개의 시험항목을 가져왔습니다",
        data=ImportResult(
            count=len(items),
            items=[TestItemInfo.model_validate(i) for i in items]
        )
    )

@router.patch("/api/test-items/{item_id}")
async def update_test_item(
    item_id: str,
    request: TestItemUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ResponseModel[TestItemInfo]:
    """部分更新测试项"""
    try:
        updates = request.model_dump(exclude_unset=True, exclude_none=True, mode="json")
        item = await TestItemService.update_test_item(item_id, updates, db, current_user.id)
        return ResponseModel(data=TestItemInfo.model_validate(item))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"更新测试项失败: {str(e)}")
        raise HTTPException(status_code=500, detail="시험항목 수정에 실패했습니다")

@router.delete("/api/test-items/{item_id}")
async def delete_test_item(
    item_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ResponseModel:
    """删除测试项"""
    try:
        await TestItemService.delete_test_item(item_id, db, current_user.id)
        return ResponseModel(message="시험항목이 삭제되었습니다")
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"删除测试项失败: {str(e)}")
        raise HTTPException(status_code=500, detail="시험항목 삭제에 실패했습니다")

@router.post("/api/test-items/{item_id}/{kind}")
async def upload_test_item_file(
    item_id: str,
    kind: str,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ResponseModel[TestItemInfo]:
    """上传测试项的照片、图表或附件"""
    if kind not in FILE_KINDS:
        raise HTTPException(status_code=404, detail="지원하지 않는 업로드 경로입니다")

    try:
        await TestItemService.get_test_item(item_id, db, current_user.id)
        file_info = await get_storage_service().save_upload(file)
        item = await TestItemService.add_file(item_id, kind, file_info, db, current_user.id)
        return ResponseModel(
            message="파일이 업로드되었습니다",
            data=TestItemInfo.model_validate(item)
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"上传测试项文件失败: {str(e)}")
        raise HTTPException(status_code=500, detail="파일 업로드에 실패했습니다")
