from setuptools import setup, find_packages

__version__ = '0.1.0'

install_requires = ['SimpleITK', 'torch', 'numpy']

extras_require = {'test': ['pytest']}


setup(
    name='gplab',
    description='Gaussian Process Laboratory: low-rank Gaussian process deformation models for registration',
    version=__version__,
    keywords=['image registration', 'gaussian process', 'nystrom approximation'],
    install_requires=install_requires,
    extras_require=extras_require,
    packages=find_packages(exclude=['tests']),
    ext_package='')
