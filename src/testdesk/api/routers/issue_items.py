from typing import List
from fastapi import APIRouter, HTTPException, Depends, UploadFile, File
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger
from testdesk.api.dependencies import get_current_user
from testdesk.api.models.base import ResponseModel
from testdesk.api.models.issue_item import IssueItemCreate, IssueItemUpdate, IssueItemInfo
from testdesk.api.services.errors import NotFoundError
from testdesk.api.services.issue_item import IssueItemService
from testdesk.api.services.project import ProjectService
from testdesk.api.services.test_item import FILE_KINDS
from testdesk.db.models import User
from testdesk.db.session import get_db
from testdesk.storage.storage import get_storage_service

router = APIRouter(tags=["issue-items"])

@router.get("/api/projects/{project_id}/issue-items")
async def list_issue_items(
    project_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ResponseModel[List[IssueItemInfo]]:
    """获取项目的问题项列表"""
    try:
        await ProjectService.get_project(project_id, db, current_user.id)
        items = await IssueItemService.list_by_project(project_id, db)
        return ResponseModel(data=[IssueItemInfo.model_validate(i) for i in items])
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

@router.post("/api/projects/{project_id}/issue-items")
async def create_issue_item(
    project_id: str,
    request: IssueItemCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ResponseModel[IssueItemInfo]:
    """添加问题项"""
    try:
        await ProjectService.get_project(project_id, db, current_user.id)
        data = request.model_dump(exclude_none=True, mode="json")
        item = await IssueItemService.create_issue_item(project_id, data, db)
        return ResponseModel(
            message="문제항목이 추가되었습니다",
            data=IssueItemInfo.model_validate(item)
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"添加问题项失败: {str(e)}")
        raise HTTPException(status_code=500, detail="문제항목 추가에 실패했습니다")

@router.patch("/api/issue-items/{item_id}")
async def update_issue_item(
    item_id: str,
    request: IssueItemUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ResponseModel[IssueItemInfo]:
    """部分更新问题项"""
    try:
        updates = request.model_dump(exclude_unset=True, exclude_none=True, mode="json")
        item = await IssueItemService.update_issue_item(item_id, updates, db, current_user.id)
        return ResponseModel(data=IssueItemInfo.model_validate(item))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"更新问题项失败: {str(e)}")
        raise HTTPException(status_code=500, detail="문제항목 수정에 실패했습니다")

@router.delete("/api/issue-items/{item_id}")
async def delete_issue_item(
    item_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ResponseModel:
    """删除问题项"""
    try:
        await IssueItemService.delete_issue_item(item_id, db, current_user.id)
        return ResponseModel(message="문제항목이 삭제되었습니다")
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"删除问题项失败: {str(e)}")
        raise HTTPException(status_code=500, detail="문제항목 삭제에 실패했습니다")

@router.post("/api/issue-items/{item_id}/{kind}")
async def upload_issue_item_file(
    item_id: str,
    kind: str,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ResponseModel[IssueItemInfo]:
    """上传问题项的照片、图表或附件"""
    if kind not in FILE_KINDS:
        raise HTTPException(status_code=404, detail="지원하지 않는 업로드 경로입니다")

    try:
        await IssueItemService.get_issue_item(item_id, db, current_user.id)
        file_info = await get_storage_service().save_upload(file)
        item = await IssueItemService.add_file(item_id, kind, file_info, db, current_user.id)
        return ResponseModel(
            message="파일이 업로드되었습니다",
            data=IssueItemInfo.model_validate(item)
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"上传问题项文件失败: {str(e)}")
        raise HTTPException(status_code=500, detail="파일 업로드에 실패했습니다")
