# app/core/errors.py
# 요청 단위 오류 분류: 라우터에서 HTTPException(status, detail)로 변환
# 비치명 오류(영양 보강, 항목별 전사/OCR, 커버 프레임)는 여기 없음: 발생 지점에서 로그 후 무시

from __future__ import annotations


class IngestError(Exception):
    status_code = 500
    default_message = "Failed to generate recipe"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InputValidationError(IngestError):
    # 입력 없음/개수 초과 등: 사용자가 고칠 수 있는 오류
    status_code = 400
    default_message = "No media or text content was provided."


class UploadTooLarge(InputValidationError):
    status_code = 413
    default_message = "Uploaded file is too large."


class AcquisitionError(IngestError):
    # 원격 URL 실패: 시도한 단계별 사유를 이어붙인 메시지
    status_code = 400
    default_message = "Could not fetch this link."


class GenerationError(IngestError):
    status_code = 502
    default_message = "The AI could not produce a recipe from this input."


class GenerationNotReady(IngestError):
    # 생성 모델 준비 미완(키 없음)
    status_code = 503
    default_message = "Server missing OPENAI_API_KEY"


class MediaFetchFailed(Exception):
    # 수집 체인 한 단계의 복구 가능한 실패. 클라이언트로 나가지 않음
    pass
