from typing import List, Optional

NO_DATA_MESSAGE = "가져올 데이터가 없습니다"
NO_VALID_ROWS_MESSAGE = "유효한 데이터 행이 없습니다"
UNSUPPORTED_FORMAT_MESSAGE = "지원하지 않는 파일 형식입니다 (.xlsx, .csv)"
UNREADABLE_FILE_MESSAGE = "파일을 읽을 수 없습니다"
IMPORT_FAILED_MESSAGE = "시험항목 가져오기에 실패했습니다"

class SpreadsheetImportError(ValueError):
    """导入校验失败

    errors 中每条信息对应一个出错的行/列, 异常文本为换行拼接后的全部信息
    """

    def __init__(self, message: Optional[str] = None, errors: Optional[List[str]] = None):
        self.errors: List[str] = list(errors) if errors else [message or IMPORT_FAILED_MESSAGE]
        super().__init__("\n".join(self.errors))
