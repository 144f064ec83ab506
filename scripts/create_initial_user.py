"""Seed a marketplace account, optionally greeting it with a first notification."""

from __future__ import annotations

import argparse
import logging
from getpass import getpass

from sqlalchemy.exc import SQLAlchemyError

from app.application.use_cases.notifications import NotificationService
from app.application.use_cases.users import create_user
from app.domain.entities import ROLE_ADMIN, USER_ROLES
from app.infrastructure.database import SessionLocal, initialize_database

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Crea una cuenta (administrador por defecto) en la base de datos.",
    )
    parser.add_argument("email", help="Correo electrónico con el que iniciará sesión")
    parser.add_argument("--name", default="Administrador", help="Nombre visible")
    parser.add_argument(
        "--role",
        default=ROLE_ADMIN,
        choices=sorted(USER_ROLES),
        help="Tipo de cuenta (por defecto: admin)",
    )
    parser.add_argument(
        "--password",
        help="Contraseña; si se omite se pide por consola",
    )
    parser.add_argument(
        "--welcome",
        action="store_true",
        help="Deja una notificación de bienvenida sin leer en la cuenta nueva",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    password = args.password or getpass("Contraseña para la cuenta nueva: ")
    if not password:
        raise SystemExit("Se requiere una contraseña.")

    initialize_database()

    with SessionLocal() as session:
        try:
            user = create_user(
                session,
                name=args.name,
                email=args.email,
                password=password,
                role=args.role,
                allow_admin=True,
            )
            if args.welcome:
                NotificationService(session).notify(
                    user.id,
                    "Bienvenido",
                    "Tu cuenta está lista para usar el marketplace",
                    "success",
                )
        except ValueError as exc:
            raise SystemExit(f"No se pudo crear la cuenta: {exc}") from exc
        except SQLAlchemyError as exc:
            raise SystemExit(f"La base de datos rechazó la cuenta: {exc}") from exc

    logger.info("Cuenta %s creada con id %s y rol %s", user.email, user.id, user.role)


if __name__ == "__main__":
    main()
