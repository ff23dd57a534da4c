from handbook.config.base import BaseConfig, DevelopmentConfig, TestingConfig

__all__ = ["BaseConfig", "DevelopmentConfig", "TestingConfig"]
