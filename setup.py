from setuptools import setup, find_packages

setup(
    name='check-cert-chain',
    version='1.0.0',
    description='Retrieve and inspect the TLS certificate chain presented by a server',
    license='MIT',
    package_dir={'': 'src'},
    packages=find_packages('src'),
    python_requires='>=3.9',
    install_requires=[
        'cryptography>=42.0',
        'pyOpenSSL>=23.0',
        'coloredlogs',
        'flask',
        'werkzeug',
        'pydantic>=2.0',
        'shtab',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'check-cert-chain = check_cert_chain.main:main',
        ],
    },
)
