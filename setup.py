from setuptools import setup, find_packages

setup(
    name='electron-ui-mcp',
    version='0.1.0',
    license="Apache 2.0",
    description="MCP server that drives Electron apps through snapshot refs",
    long_description=open('README.md').read(),  # Ensure the README.md exists and is correct
    long_description_content_type='text/markdown',
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        'playwright>=1.40',
        'pydantic>=2.5',
        'click>=8.0',
        'python-dotenv>=1.0',
        'PyYAML>=6.0',
        'websockets>=11.0',
        'mcp>=1.9,<2',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
            'pytest-asyncio>=0.21',
        ],
    },
    entry_points={
        'console_scripts': [
            'electron-ui-mcp=electron_ui_mcp.command.electron_ui_mcp:run',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
    ],
    python_requires='>=3.10',
)
