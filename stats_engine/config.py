import os


class Settings:
    """환경 변수 기반 프로세스 설정"""

    # Redis 연산 결과 캐시 (미설정 시 프로세스 내 메모리 캐시 사용)
    CACHE_REDIS_URL = os.getenv('STATS_CACHE_REDIS_URL')
    CACHE_TTL = int(os.getenv('STATS_CACHE_TTL', 2 * 60 * 60))
    CACHE_PREFIX = os.getenv('STATS_CACHE_PREFIX', 'stats:')
    CACHE_MAX_ENTRIES = int(os.getenv('STATS_CACHE_MAX_ENTRIES', 1024))

    # 이 크기를 넘는 입력은 Celery 작업으로 처리
    BACKGROUND_THRESHOLD = int(os.getenv('STATS_BACKGROUND_THRESHOLD', 10000))
    BACKGROUND_ENABLED = os.getenv('STATS_BACKGROUND_ENABLED', 'true').lower() in ['true', 'on', '1']

    LOG_LEVEL = os.getenv('STATS_LOG_LEVEL', 'INFO').upper()


settings = Settings()
