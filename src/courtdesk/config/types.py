"""Configuration type definitions."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TypedDict

class CourtConfig(TypedDict):
    """Court configuration."""
    id: str
    name: str

class PromotionConfig(TypedDict, total=False):
    """Promotion rule configuration."""
    id: str
    name: str
    start_time: float
    end_time: float
    rate: float
    is_active: bool

class DocumentConfig(TypedDict, total=False):
    """Receipt and voucher numbering configuration."""
    receipt_prefix: str
    receipt_next_number: int
    voucher_prefix: str
    voucher_next_number: int

class CompanyConfig(TypedDict, total=False):
    """Company profile printed on documents."""
    name: str
    address: str
    phone: str
    date_format: str
    time_format: str
    footer_message: str

class OperatorConfig(TypedDict, total=False):
    """Operator the CLI acts as."""
    username: str
    name: str
    role: str
    permissions: List[str]

class LoggingSettings(TypedDict, total=False):
    """Logging configuration."""
    default_level: str
    file: Optional[str]

class GlobalConfig(TypedDict, total=False):
    """Global configuration structure."""
    data_dir: str
    currency: str
    base_hourly_rate: float
    courts: List[CourtConfig]
    promotion_rules: List[PromotionConfig]
    document_settings: DocumentConfig
    company: CompanyConfig
    operator: OperatorConfig
    logging: LoggingSettings

DEFAULT_COURTS: List[CourtConfig] = [
    {'id': 'Court 1', 'name': 'Court 1'},
    {'id': 'Court 2', 'name': 'Court 2'},
    {'id': 'Court 3', 'name': 'Court 3'},
    {'id': 'Court 4', 'name': 'Court 4'},
]

@dataclass
class AppConfig:
    """Application configuration."""
    global_config: Dict[str, Any]
    data_dir: str = "data"
    currency: str = "USD"
    base_hourly_rate: float = 20.0
    courts: List[CourtConfig] = field(default_factory=lambda: list(DEFAULT_COURTS))
    promotion_rules: List[PromotionConfig] = field(default_factory=list)
    document_settings: DocumentConfig = field(default_factory=dict)
    company: CompanyConfig = field(default_factory=dict)
    operator: OperatorConfig = field(default_factory=dict)
    config_dir: str = "config"
    log_level: str = "WARNING"
    log_file: Optional[str] = None

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return getattr(self, key, default)
