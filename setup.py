"""
Setup script for StackRAG - Retrieval-Augmented Generation over an in-memory vector store
"""

from setuptools import setup, find_packages

setup(
    name="stackrag",
    version="0.1.0",
    author="Evan Phibbs",
    description="Retrieval-augmented question answering over an in-memory vector store",
    url="https://github.com/ephibbs/stackrag",
    packages=find_packages(include=["stackrag", "stackrag.*"]),
    python_requires=">=3.11",
    install_requires=[
        "numpy>=1.24.3",
        "pydantic>=2.11.5",
        "pydantic-settings>=2.2.1",
        "httpx>=0.27.0",
        "tenacity>=8.2.3",
        "loguru>=0.7.2",
        "beautifulsoup4>=4.12.0",
        "pymupdf>=1.24.0",
        "python-docx>=1.1.0",
    ],
    extras_require={
        "api": [
            "fastapi>=0.110.0",
            "uvicorn>=0.29.0",
        ],
        "dev": [
            "pytest>=6.0.0",
            "fastapi>=0.110.0",
            "uvicorn>=0.29.0",
            "black>=25.1.0",
            "flake8>=6.0.0",
            "mypy>=1.15.0",
        ],
    },
    include_package_data=True,
    zip_safe=False,
    keywords="rag, retrieval augmented generation, vector store, embeddings, cosine similarity",
    project_urls={
        "Bug Reports": "https://github.com/ephibbs/stackrag/issues",
        "Source": "https://github.com/ephibbs/stackrag",
        "Documentation": "https://github.com/ephibbs/stackrag/README.md",
    },
)
