from setuptools import setup, find_packages

setup(
    name="rule-validator",
    version="0.1.0",
    description="Declarative field validation with pipe-delimited rule expressions",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        'rule_validator': ['local-config.yaml', 'messages.yaml'],
    },
    include_package_data=True,
    install_requires=[
        'pyyaml>=6.0',
        'jsonschema>=4.17.0',
        'requests>=2.28.0',
        'email-validator>=2.0.0',
    ],
    extras_require={
        'test': ['pytest>=7.0'],
    },
    entry_points={
        'console_scripts': [
            'rule-validator-rpc=rule_validator.jsonrpc_server:main',
        ],
    },
    python_requires='>=3.9',
)
