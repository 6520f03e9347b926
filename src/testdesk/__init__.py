"""TestDesk - 시험 항목 관리 백엔드"""

__version__ = "1.0.0"
