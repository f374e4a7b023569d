"""
커스텀 예외 클래스 정의

이 모듈은 통계 엔진의 오류 분류 체계(검증 오류 / 수치 오류 / 일시적 수치 오류)와
HTTP 계층에서 사용하는 API 예외 및 중앙 집중식 예외 핸들러를 정의합니다.
"""

import logging
from typing import Optional, Dict, Any
from fastapi import Request, status
from fastapi.responses import JSONResponse

from .utils.error_messages import create_user_friendly_error

logger = logging.getLogger(__name__)


class StatisticalError(Exception):
    """
    통계 엔진 오류의 기본 클래스

    재시도 가능 여부는 메시지가 아닌 예외 타입(retryable 속성)으로 결정됩니다.
    """

    retryable = False
    default_code = "NUMERICAL_INSTABILITY"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(StatisticalError):
    """표본 크기/형태 사전 조건 위반. 수치 계산 전에 발생하며 재시도하지 않습니다."""

    default_code = "INSUFFICIENT_DATA"


class NumericalError(StatisticalError):
    """특수 함수의 정의역 위반 등 치명적인 수치 오류"""

    default_code = "DOMAIN_ERROR"


class TransientNumericalError(NumericalError):
    """재시도 가능한 수치 오류"""

    retryable = True
    default_code = "NUMERICAL_INSTABILITY"


class ConvergenceError(TransientNumericalError):
    """연분수/급수 평가가 유한한 값으로 수렴하지 못한 경우"""

    default_code = "CONVERGENCE_FAILURE"


class BaseAPIException(Exception):
    """
    API 예외의 기본 클래스

    모든 HTTP 계층 예외는 이 클래스를 상속받아야 합니다.
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class AnalysisJobNotFoundException(BaseAPIException):
    """백그라운드 분석 작업을 찾을 수 없을 때 발생하는 예외"""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(
            message=f"Analysis job with id '{job_id}' not found",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"job_id": job_id}
        )


class UnsupportedAnalysisException(BaseAPIException):
    """지원하지 않는 분석 유형이 요청된 경우"""

    def __init__(self, analysis_type: str):
        self.analysis_type = analysis_type
        super().__init__(
            message=f"Unsupported analysis type: {analysis_type}",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"analysis_type": analysis_type}
        )


# 예외 핸들러 함수들
async def base_api_exception_handler(request: Request, exc: BaseAPIException) -> JSONResponse:
    """
    BaseAPIException에 대한 기본 예외 핸들러

    Args:
        request: FastAPI 요청 객체
        exc: 발생한 예외

    Returns:
        JSONResponse: 표준화된 에러 응답
    """
    logger.error(
        f"API Exception: {exc.message} | "
        f"Status: {exc.status_code} | "
        f"Details: {exc.details} | "
        f"Path: {request.url.path}"
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": {
                "message": exc.message,
                "type": exc.__class__.__name__,
                "status_code": exc.status_code,
                "details": exc.details
            },
            "path": str(request.url.path),
            "method": request.method
        }
    )


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """분석 입력 검증 오류 핸들러 (메시지를 그대로 전달)"""
    logger.warning(f"Statistical validation error: {exc.message} | Code: {exc.error_code} | Path: {request.url.path}")
    info = create_user_friendly_error(exc.error_code, exc.details)

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "success": False,
            "error": {
                "message": exc.message,
                "type": "ValidationError",
                "code": exc.error_code,
                "details": exc.details,
                "help": info.to_dict()
            }
        }
    )


async def numerical_error_handler(request: Request, exc: NumericalError) -> JSONResponse:
    """수치 계산 오류 핸들러"""
    logger.error(f"Numerical error: {exc.message} | Code: {exc.error_code} | Path: {request.url.path}")
    info = create_user_friendly_error(exc.error_code, exc.details)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": {
                "message": info.user_message,
                "type": exc.__class__.__name__,
                "code": exc.error_code,
                "retryable": exc.retryable,
                "help": info.to_dict()
            }
        }
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """처리되지 않은 예외에 대한 일반 핸들러"""
    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {str(exc)} | "
        f"Path: {request.url.path}",
        exc_info=True
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": {
                "message": "An unexpected error occurred. Please try again later.",
                "type": "InternalServerError"
            }
        }
    )
