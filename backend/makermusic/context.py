from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .attachments import AttachmentStore
from .config import Settings
from .database import build_engine, build_session_factory
from .mailer import Mailer
from .security import TokenCodec


@dataclass
class AppContext:
    settings: Settings
    engine: Engine
    session_factory: sessionmaker
    tokens: TokenCodec
    mailer: Mailer
    attachments: AttachmentStore

    @classmethod
    def build(cls, settings: Settings, *, engine: Engine | None = None, mailer: Mailer | None = None) -> "AppContext":
        engine = engine or build_engine(settings.database_url, pool_size=settings.db_pool_size)
        return cls(
            settings=settings,
            engine=engine,
            session_factory=build_session_factory(engine),
            tokens=TokenCodec(
                settings.jwt_secret,
                algorithm=settings.jwt_algorithm,
                ttl=timedelta(minutes=settings.jwt_exp_minutes),
            ),
            mailer=mailer
            or Mailer(
                settings.smtp_host,
                settings.smtp_port,
                settings.smtp_username,
                settings.smtp_password,
            ),
            attachments=AttachmentStore(settings.upload_dir, settings.max_upload_bytes),
        )
