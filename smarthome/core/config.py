from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "Smart Home IoT"
    service_name: str = "smart-home-iot-publisher"
    timezone: str = "America/Argentina/Buenos_Aires"

    # Broker (public demo broker, websockets to avoid blocked 1883)
    broker_url: str = "wss://test.mosquitto.org:8081/mqtt"
    mqtt_client_id: str = "smarthome"
    mqtt_keepalive: int = 30
    mqtt_reconnect_min_seconds: int = 2
    mqtt_reconnect_max_seconds: int = 30
    base_topic: str = "home"

    rooms: list[str] = Field(default_factory=lambda: ["cocina", "jardin", "bano", "habitacion"])

    # Dashboard state
    event_log_capacity: int = 300
    alert_dismiss_seconds: float = 6.0

    # Simulator
    publish_interval_seconds: int = 30
    leak_probability: float = 0.02
    leak_probability_away: float = 0.002

    # Alert thresholds
    power_total_max_w: float = 2000
    temperature_min_c: float = 18
    temperature_max_c: float = 28
    humidity_min_pct: float = 30
    humidity_max_pct: float = 70
    co2_max_ppm: float = 1000
    device_over_pct: float = 0.5       # 50% above expected
    device_anomaly_expected_w: float = 50
    device_anomaly_value_w: float = 5

    # Storage
    history_dir: str = Field(default="history")
    sqlite_path: str = Field(default="smarthome.db")
    log_file: str = "smarthome.log"
    log_level: str = "INFO"


settings = Settings()
