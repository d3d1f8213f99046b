from setuptools import setup, find_packages


setup(
    name='torch_cgm',
    version='0.1.0',
    packages=find_packages(include=['torch_cgm', 'torch_cgm.*']),
    install_requires=[
        'torch>=1.13.0',
    ],
    extras_require={
        'test':['pytest','numpy','scipy'],
        'docs':['sphinx', 'furo']
    }
)
