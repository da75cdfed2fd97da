"""Application-wide configuration loader.

Every value comes from the environment.  A single module-level ``settings``
instance is created at import time; tests and alternative entry points can
build their own ``Settings()`` after tweaking ``os.environ``.
"""

import os


class Settings:
    """Settings helper that gracefully falls back to sane defaults.

    Rationale
    ---------
    Deployment platforms happily inject variables whose value is an empty
    string.  ``os.getenv("KIE_BASE_URL", default)`` would then return ``""``
    and override the useful in-code default, so every setting uses the idiom

        os.getenv(KEY) or DEFAULT

    which replaces *falsy* values ("", None) by the specified DEFAULT.
    """

    def __init__(self) -> None:
        # --- Service --------------------------------------------------------
        self.SERVICE_NAME: str = os.getenv('SERVICE_NAME') or 'Post Enhancer'
        self.VERSION: str = os.getenv('SERVICE_VERSION') or '1.1.0'
        self.PORT: int = int(os.getenv('PORT') or '3000')
        self.PUBLIC_BASE_URL: str = (os.getenv('PUBLIC_BASE_URL') or 'http://localhost:3000').rstrip('/')
        self.HTTP_TIMEOUT_SECONDS: float = float(os.getenv('HTTP_TIMEOUT_SECONDS') or '60')

        # --- Inbound auth ---------------------------------------------------
        self.AUTH_TOKEN: str = os.getenv('AUTH_TOKEN') or ''
        self.AUTH_HEADER_NAME: str = os.getenv('AUTH_HEADER_NAME') or 'X-Enhancer-Key'

        # --- WordPress ------------------------------------------------------
        self.WP_URL: str = (os.getenv('WP_URL') or '').rstrip('/')
        self.WP_USER: str = os.getenv('WP_USER') or ''
        self.WP_APP_PASSWORD: str = os.getenv('WP_APP_PASSWORD') or ''

        # --- kie.ai image generation ---------------------------------------
        self.KIE_API_KEY: str = os.getenv('KIE_API_KEY') or ''
        self.KIE_BASE_URL: str = (os.getenv('KIE_BASE_URL') or 'https://api.kie.ai').rstrip('/')
        self.KIE_MODEL: str = os.getenv('KIE_MODEL') or 'nano-banana-pro'
        self.KIE_RESOLUTION: str = os.getenv('KIE_RESOLUTION') or '1K'
        self.KIE_OUTPUT_FORMAT: str = os.getenv('KIE_OUTPUT_FORMAT') or 'jpg'

        # --- Job waiting ----------------------------------------------------
        self.WAITER_MODE: str = (os.getenv('WAITER_MODE') or 'callback').lower()
        self.CALLBACK_TIMEOUT_SECONDS: float = float(os.getenv('CALLBACK_TIMEOUT_SECONDS') or '120')
        self.POLL_INTERVAL_SECONDS: float = float(os.getenv('POLL_INTERVAL_SECONDS') or '2')
        self.POLL_MAX_ATTEMPTS: int = int(os.getenv('POLL_MAX_ATTEMPTS') or '60')

        # --- YouTube --------------------------------------------------------
        self.YOUTUBE_API_KEY: str = os.getenv('YOUTUBE_API_KEY') or ''
        self.YT_CHANNEL_ID: str = os.getenv('YT_CHANNEL_ID') or ''

        # --- Telegram -------------------------------------------------------
        self.BOT_TOKEN: str = os.getenv('BOT_TOKEN') or ''
        self.TELEGRAM_CHAT_ID: str = os.getenv('TELEGRAM_CHAT_ID') or ''
        self.NOTIFY_TIMEZONE: str = os.getenv('NOTIFY_TIMEZONE') or 'UTC'

        # --- Site branding & media -----------------------------------------
        self.SITE_NAME: str = os.getenv('SITE_NAME') or ''
        self.FILENAME_SUFFIX: str = os.getenv('FILENAME_SUFFIX') or '-featured.jpg'
        self.JPEG_QUALITY: int = int(os.getenv('JPEG_QUALITY') or '85')
        # Prepended to the branded alt text in the media library description.
        self.MEDIA_DESCRIPTION_PREFIX: str = os.getenv('MEDIA_DESCRIPTION_PREFIX') or ''
        self.DEFAULT_IMAGE_PROMPT: str = os.getenv('DEFAULT_IMAGE_PROMPT') or (
            'Professional editorial photo illustrating the article topic, '
            'high quality, realistic, modern, clean'
        )
        self.SOCIAL_IMAGE_PROMPT_TEMPLATE: str = os.getenv('SOCIAL_IMAGE_PROMPT_TEMPLATE') or (
            'Professional realistic photo about {topic}, high quality work, modern, clean'
        )

        # --- Geo meta (optional) -------------------------------------------
        self.GEO_LATITUDE: str = os.getenv('GEO_LATITUDE') or ''
        self.GEO_LONGITUDE: str = os.getenv('GEO_LONGITUDE') or ''
        self.GEO_ADDRESS: str = os.getenv('GEO_ADDRESS') or ''

        # --- Logging --------------------------------------------------------
        self.LOG_DIR: str = os.getenv('LOG_DIR') or 'backend/logs'
        self.LOG_LEVEL: str = (os.getenv('LOG_LEVEL') or 'INFO').upper()

    @property
    def kie_callback_url(self) -> str:
        return f"{self.PUBLIC_BASE_URL}/kie-callback"

    @property
    def telegram_enabled(self) -> bool:
        return bool(self.BOT_TOKEN and self.TELEGRAM_CHAT_ID)

    @property
    def youtube_enabled(self) -> bool:
        return bool(self.YOUTUBE_API_KEY and self.YT_CHANNEL_ID)


settings = Settings()
