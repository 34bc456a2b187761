from setuptools import setup, find_packages

setup(
    name='siwe-message',
    version='0.1.0',
    project_urls={
        'EIP-4361': 'https://github.com/ethereum/EIPs/blob/master/EIPS/eip-4361.md'
    },
    packages=find_packages(exclude=['tests', 'tests.*']),
    include_package_data=True,
    python_requires='>=3.8',
    install_requires=[
        'abnf>=2.2.0',
        'eth-account>=0.10.0',
        'eth-keys>=0.4.0',
        'eth-typing>=3.5.0',
        'eth-utils>=2.3.0',
        'pydantic>=2.0',
        'typing_extensions>=4.0',
        'web3>=6.0.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
            'pyhumps>=3.0,<3.8',
            'python-dateutil>=2.8',
        ],
    },
    license='MIT',
    description='Create, parse and verify Sign-In with Ethereum (EIP-4361) messages.',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
)
