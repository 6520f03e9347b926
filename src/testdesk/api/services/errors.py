class NotFoundError(ValueError):
    """记录不存在, 或不属于当前用户"""

PROJECT_NOT_FOUND = "프로젝트를 찾을 수 없습니다"
TEST_ITEM_NOT_FOUND = "시험항목을 찾을 수 없습니다"
ISSUE_ITEM_NOT_FOUND = "문제항목을 찾을 수 없습니다"
