"""
Setup script para instalação do Assistente Financeiro.

Este arquivo permite instalar o projeto em modo editable para desenvolvimento:
    pip install -e .[test]

Isso adiciona o projeto ao PYTHONPATH e permite imports como:
    from services.conta49 import Conta49Client
"""

from setuptools import setup, find_packages

setup(
    name="assistente-financeiro",
    version="1.0.0",
    description="Conciliação de pagamentos Conta49 -> Banco Inter",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["config", "main"],
    python_requires=">=3.10",
    install_requires=[
        "fastapi>=0.110",
        "uvicorn[standard]>=0.27",
        "sqlalchemy>=2.0",
        "psycopg2-binary>=2.9",
        "httpx>=0.27",
        "pydantic>=2.5",
        "python-dotenv>=1.0",
        "structlog>=24.1",
        "pytz>=2024.1",
        "beautifulsoup4>=4.12",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
)
