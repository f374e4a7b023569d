"""
Statistical Analysis API Models

이 모듈은 통계 분석 HTTP 엔드포인트의 요청/응답 모델을 정의합니다.
수치 조건(표본 크기, 유의수준 범위 등)은 엔진이 검증하여 오류 코드와 함께
보고하므로, 여기서는 요청의 형태만 검증합니다.
"""

from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

NumericValues = List[Optional[float]]


class JobPriorityEnum(str, Enum):
    """백그라운드 작업 우선순위"""
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class CorrelationMethodEnum(str, Enum):
    """상관계수 방법"""
    PEARSON = "pearson"
    SPEARMAN = "spearman"


class TTestTypeEnum(str, Enum):
    """t-검정 유형"""
    ONE_SAMPLE = "one-sample"
    INDEPENDENT = "independent"
    PAIRED = "paired"


class NonParametricTestTypeEnum(str, Enum):
    """비모수 검정 유형"""
    MANN_WHITNEY = "mann-whitney"
    WILCOXON = "wilcoxon"
    KRUSKAL_WALLIS = "kruskal-wallis"


class DataTypeEnum(str, Enum):
    """변수 자료형"""
    NUMERIC = "numeric"
    CATEGORICAL = "categorical"


class AnalysisRequest(BaseModel):
    """분석 요청 공통 필드"""
    owner_id: Optional[str] = Field(None, description="요청자 ID (백그라운드 작업에 기록)")
    priority: Optional[JobPriorityEnum] = Field(None, description="백그라운드 작업 우선순위")

    ANALYSIS_TYPE: ClassVar[Optional[str]] = None

    def to_params(self) -> Dict[str, Any]:
        """엔진 메서드 키워드 인자 (기본: 공통 필드를 제외한 모든 필드)"""
        return self.model_dump(exclude={"owner_id", "priority"})

    def to_analysis(self) -> Tuple[str, Dict[str, Any]]:
        return self.ANALYSIS_TYPE, self.to_params()


class DescriptiveStatsRequest(AnalysisRequest):
    """기술 통계 요청"""
    values: List[Any] = Field(..., description="관측값 (null은 결측으로 처리)")
    name: str = Field("data", description="변수 이름")

    ANALYSIS_TYPE: ClassVar[str] = "descriptive"

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"values": [1.2, 2.5, None, 3.1, 4.8], "name": "latency"}
        }
    )


class FrequencyAnalysisRequest(AnalysisRequest):
    """빈도 분석 요청"""
    values: List[Any] = Field(..., description="관측값 (숫자 또는 범주)")
    bin_count: Optional[int] = Field(None, ge=1, description="히스토그램 구간 수 (숫자 데이터)")

    ANALYSIS_TYPE: ClassVar[str] = "frequency"


class CorrelationRequest(AnalysisRequest):
    """상관 행렬 요청"""
    data: Dict[str, NumericValues] = Field(..., description="변수 이름 → 관측값 (모두 같은 길이)")
    method: CorrelationMethodEnum = Field(CorrelationMethodEnum.PEARSON, description="상관계수 방법")

    ANALYSIS_TYPE: ClassVar[str] = "correlation"

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "data": {"x": [1, 2, 3, 4, 5], "y": [2.1, 3.9, 6.2, 8.1, 9.8]},
                "method": "pearson"
            }
        }
    )

    @field_validator("data")
    @classmethod
    def validate_variables(cls, v):
        if len(v) < 2:
            raise ValueError("at least two variables are required")
        return v

    def to_params(self) -> Dict[str, Any]:
        return {"data": self.data, "method": self.method.value}


class NormalityTestRequest(AnalysisRequest):
    """정규성 검정 요청"""
    data: NumericValues = Field(..., description="관측값")
    alpha: Optional[float] = Field(None, description="유의수준 (기본 0.05)")

    ANALYSIS_TYPE: ClassVar[str] = "normality"


class ContingencyTableRequest(AnalysisRequest):
    """분할표 요청"""
    row_data: List[Any] = Field(..., description="행 변수 관측값")
    column_data: List[Any] = Field(..., description="열 변수 관측값")
    row_variable: str = Field("row", description="행 변수 이름")
    column_variable: str = Field("column", description="열 변수 이름")

    ANALYSIS_TYPE: ClassVar[str] = "contingency"


class TTestRequest(AnalysisRequest):
    """t-검정 요청"""
    test_type: TTestTypeEnum = Field(..., description="t-검정 유형")
    data: Optional[NumericValues] = Field(None, description="단일 표본 관측값")
    population_mean: float = Field(0.0, description="단일 표본 검정의 모평균")
    group1: Optional[NumericValues] = Field(None, description="독립 표본 그룹 1")
    group2: Optional[NumericValues] = Field(None, description="독립 표본 그룹 2")
    equal_variances: bool = Field(True, description="등분산 가정 (False면 Welch 검정)")
    before: Optional[NumericValues] = Field(None, description="대응 표본 사전 측정값")
    after: Optional[NumericValues] = Field(None, description="대응 표본 사후 측정값")
    alpha: Optional[float] = Field(None, description="유의수준 (기본 0.05)")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "test_type": "independent",
                "group1": [5.1, 4.9, 5.6, 5.8, 6.0],
                "group2": [6.5, 6.8, 7.1, 6.9, 7.4],
                "equal_variances": False
            }
        }
    )

    @model_validator(mode="after")
    def validate_required_fields(self):
        required = {
            TTestTypeEnum.ONE_SAMPLE: ("data",),
            TTestTypeEnum.INDEPENDENT: ("group1", "group2"),
            TTestTypeEnum.PAIRED: ("before", "after"),
        }[self.test_type]
        missing = [name for name in required if getattr(self, name) is None]
        if missing:
            raise ValueError(f"{self.test_type.value} t-test requires: {', '.join(missing)}")
        return self

    def to_analysis(self) -> Tuple[str, Dict[str, Any]]:
        return f"{self.test_type.value}-t-test", self.to_params()

    def to_params(self) -> Dict[str, Any]:
        if self.test_type == TTestTypeEnum.ONE_SAMPLE:
            return {"data": self.data, "population_mean": self.population_mean, "alpha": self.alpha}
        if self.test_type == TTestTypeEnum.INDEPENDENT:
            return {"group1": self.group1, "group2": self.group2,
                    "equal_variances": self.equal_variances, "alpha": self.alpha}
        return {"before": self.before, "after": self.after, "alpha": self.alpha}


class ANOVARequest(AnalysisRequest):
    """일원 분산분석 요청"""
    groups: Dict[str, NumericValues] = Field(..., description="그룹 이름 → 관측값")
    alpha: Optional[float] = Field(None, description="유의수준 (기본 0.05)")

    ANALYSIS_TYPE: ClassVar[str] = "anova"

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "groups": {"A": [1, 2, 3], "B": [4, 5, 6], "C": [7, 8, 9]}
            }
        }
    )


class RegressionRequest(AnalysisRequest):
    """단순 선형 회귀 요청"""
    x: NumericValues = Field(..., description="독립변수")
    y: NumericValues = Field(..., description="종속변수")
    alpha: Optional[float] = Field(None, description="유의수준 (기본 0.05)")

    ANALYSIS_TYPE: ClassVar[str] = "regression"


class NonParametricTestRequest(AnalysisRequest):
    """비모수 검정 요청"""
    test_type: NonParametricTestTypeEnum = Field(..., description="비모수 검정 유형")
    group1: Optional[NumericValues] = Field(None, description="Mann-Whitney 그룹 1")
    group2: Optional[NumericValues] = Field(None, description="Mann-Whitney 그룹 2")
    group_names: Optional[List[str]] = Field(None, description="Mann-Whitney 그룹 이름 2개")
    before: Optional[NumericValues] = Field(None, description="Wilcoxon 사전 측정값")
    after: Optional[NumericValues] = Field(None, description="Wilcoxon 사후 측정값")
    groups: Optional[Dict[str, NumericValues]] = Field(None, description="Kruskal-Wallis 그룹")
    alpha: Optional[float] = Field(None, description="유의수준 (기본 0.05)")

    @field_validator("group_names")
    @classmethod
    def validate_group_names(cls, v):
        if v is not None and len(v) != 2:
            raise ValueError("group_names must contain exactly two names")
        return v

    @model_validator(mode="after")
    def validate_required_fields(self):
        required = {
            NonParametricTestTypeEnum.MANN_WHITNEY: ("group1", "group2"),
            NonParametricTestTypeEnum.WILCOXON: ("before", "after"),
            NonParametricTestTypeEnum.KRUSKAL_WALLIS: ("groups",),
        }[self.test_type]
        missing = [name for name in required if getattr(self, name) is None]
        if missing:
            raise ValueError(f"{self.test_type.value} test requires: {', '.join(missing)}")
        return self

    def to_analysis(self) -> Tuple[str, Dict[str, Any]]:
        return self.test_type.value, self.to_params()

    def to_params(self) -> Dict[str, Any]:
        if self.test_type == NonParametricTestTypeEnum.MANN_WHITNEY:
            return {"group1": self.group1, "group2": self.group2,
                    "group_names": self.group_names, "alpha": self.alpha}
        if self.test_type == NonParametricTestTypeEnum.WILCOXON:
            return {"before": self.before, "after": self.after, "alpha": self.alpha}
        return {"groups": self.groups, "alpha": self.alpha}


class TestSuggestionRequest(AnalysisRequest):
    """검정 추천 요청"""
    __test__ = False

    data_types: Dict[str, DataTypeEnum] = Field(..., description="변수 이름 → 자료형")
    sample_sizes: Dict[str, int] = Field(..., description="변수 이름 → 표본 크기")
    num_groups: Optional[int] = Field(None, ge=1, description="그룹 수")
    paired_data: bool = Field(False, description="대응 표본 여부")

    ANALYSIS_TYPE: ClassVar[str] = "suggest-tests"

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "data_types": {"score": "numeric", "group": "categorical"},
                "sample_sizes": {"score": 24, "group": 24},
                "num_groups": 3
            }
        }
    )

    def to_params(self) -> Dict[str, Any]:
        return {
            "data_types": {name: data_type.value for name, data_type in self.data_types.items()},
            "sample_sizes": self.sample_sizes,
            "num_groups": self.num_groups,
            "paired_data": self.paired_data,
        }


class JobInfo(BaseModel):
    """백그라운드 작업 등록 정보"""
    job_id: str = Field(..., description="작업 ID")
    analysis_type: str = Field(..., description="분석 유형")
    input_size: int = Field(..., description="입력 데이터 포인트 수")
    status: str = Field("queued", description="작업 상태")
    status_url: str = Field(..., description="상태 조회 경로")


class JobStatusResponse(BaseModel):
    """백그라운드 작업 상태"""
    task_id: str = Field(..., description="작업 ID")
    status: str = Field(..., description="Celery 작업 상태")
    ready: bool = Field(..., description="완료 여부")
    successful: bool = Field(..., description="성공 여부")
    failed: bool = Field(..., description="실패 여부")
    result: Optional[Any] = Field(None, description="작업 결과")
    error: Optional[str] = Field(None, description="오류 메시지")
    meta: Optional[Dict[str, Any]] = Field(None, description="진행 상태 메타데이터")
