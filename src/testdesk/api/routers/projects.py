from typing import List
from fastapi import APIRouter, HTTPException, Depends, UploadFile, File, Form
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger
from testdesk.api.dependencies import get_current_user
from testdesk.api.models.base import ResponseModel
from testdesk.api.models.project import ProjectCreate, ProjectUpdate, ProjectInfo, ProjectSummary
from testdesk.api.services.errors import NotFoundError
from testdesk.api.services.project import ProjectService, IMAGE_FIELDS
from testdesk.db.models import User
from testdesk.db.session import get_db
from testdesk.storage.storage import get_storage_service

router = APIRouter(prefix="/api/projects", tags=["projects"])

@router.get("")
async def list_projects(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ResponseModel[List[ProjectInfo]]:
    """获取当前用户的项目列表"""
    projects = await ProjectService.list_projects(current_user.id, db)
    return ResponseModel(data=[ProjectInfo.model_validate(p) for p in projects])

@router.post("")
async def create_project(
    request: ProjectCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ResponseModel[ProjectInfo]:
    """创建项目"""
    try:
        data = request.model_dump(exclude_none=True, mode="json")
        project = await ProjectService.create_project(current_user.id, data, db)
        return ResponseModel(
            message="프로젝트가 생성되었습니다",
            data=ProjectInfo.model_validate(project)
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"创建项目失败: {str(e)}")
        raise HTTPException(status_code=500, detail="프로젝트 생성에 실패했습니다")

@router.get("/{project_id}")
async def get_project(
    project_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ResponseModel[ProjectInfo]:
    """获取项目详情"""
    try:
        project = await ProjectService.get_project(project_id, db, current_user.id)
        return ResponseModel(data=ProjectInfo.model_validate(project))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

@router.patch("/{project_id}")
async def update_project(
    project_id: str,
    request: ProjectUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ResponseModel[ProjectInfo]:
    """部分更新项目"""
    try:
        updates = request.model_dump(exclude_unset=True, exclude_none=True, mode="json")
        project = await ProjectService.update_project(project_id, updates, db, current_user.id)
        return ResponseModel(
            message="프로젝트가 수정되었습니다",
            data=ProjectInfo.model_validate(project)
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"更新项目失败: {str(e)}")
        raise HTTPException(status_code=500, detail="프로젝트 수정에 실패했습니다")

@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ResponseModel:
    """删除项目及其测试项、问题项"""
    try:
        await ProjectService.delete_project(project_id, db, current_user.id)
        return ResponseModel(message="프로젝트가 삭제되었습니다")
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"删除项目失败: {str(e)}")
        raise HTTPException(status_code=500, detail="프로젝트 삭제에 실패했습니다")

@router.get("/{project_id}/summary")
async def get_project_summary(
    project_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ResponseModel[ProjectSummary]:
    """获取项目测试进度统计"""
    try:
        summary = await ProjectService.get_summary(project_id, db, current_user.id)
        return ResponseModel(data=ProjectSummary(**summary))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

@router.post("/{project_id}/images")
async def upload_project_image(
    project_id: str,
    type: str = Form(...),
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> ResponseModel[ProjectInfo]:
    """上传产品图片或日程图片"""
    try:
        # 先确认项目和图片类型, 避免留下孤立文件
        await ProjectService.get_project(project_id, db, current_user.id)
        if type not in IMAGE_FIELDS:
            raise ValueError("이미지 종류는 product 또는 schedule 이어야 합니다")
        file_info = await get_storage_service().save_upload(file)
        project = await ProjectService.set_image(project_id, type, file_info, db, current_user.id)
        return ResponseModel(
            message="이미지가 업로드되었습니다",
            data=ProjectInfo.model_validate(project)
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"上传项目图片失败: {str(e)}")
        raise HTTPException(status_code=500, detail="이미지 업로드에 실패했습니다")
