"""QR 체크포인트 기반 실내 쇼핑몰 길안내 백엔드."""

__version__ = "1.0.0"
