from setuptools import setup, find_packages

setup(
    name='installctl',
    version='0.1.0',
    packages=find_packages(),
    include_package_data=True,
    install_requires=[
        'typer',
        'kubernetes',
        'python-dotenv',
        'requests'
    ],
    extras_require={
        'test': [
            'pytest',
        ]
    },
    entry_points={
        'console_scripts': [
            'installctl=installctl.cli:app'
        ]
    },
    author='Your Name',
    description='Post-bootstrap controller that drives a new OpenShift cluster to a completed installation',
    classifiers=[
        'Programming Language :: Python :: 3',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.8',
)
