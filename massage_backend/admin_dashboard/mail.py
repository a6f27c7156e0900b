from fastapi_mail import FastMail, ConnectionConfig, MessageSchema, MessageType # type: ignore
from jinja2 import Environment, FileSystemLoader
from massage_backend.config import Config
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent
TEMPLATE_DIR = Path(BASE_DIR, 'templates')


mail_config = ConnectionConfig(
    MAIL_USERNAME = Config.MAIL_USERNAME,
    MAIL_PASSWORD = Config.MAIL_PASSWORD,
    MAIL_FROM = Config.MAIL_FROM,
    MAIL_PORT = Config.MAIL_PORT,
    MAIL_SERVER = Config.MAIL_SERVER,
    MAIL_FROM_NAME= Config.MAIL_FROM_NAME,
    MAIL_STARTTLS = Config.MAIL_STARTTLS,
    MAIL_SSL_TLS = Config.MAIL_SSL_TLS,
    USE_CREDENTIALS = Config.USE_CREDENTIALS,
    VALIDATE_CERTS = Config.VALIDATE_CERTS,
    TEMPLATE_FOLDER = TEMPLATE_DIR
)


mail = FastMail(
    config = mail_config
)

env = Environment(loader=FileSystemLoader(TEMPLATE_DIR))


def create_message(recipients: list[str], subject: str, template_name: str, template_body: dict = None):
    if template_body is None:
        template_body = {}

    template = env.get_template(template_name)
    html_content = template.render(**template_body)

    message = MessageSchema(
        recipients=recipients,
        subject=subject,
        body=html_content,
        subtype=MessageType.html
    )

    return message
