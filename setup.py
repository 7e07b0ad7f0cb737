from setuptools import setup

setup(
    name='lirc-connector-py',
    version='0.0.1',
    description='A client for the lircd socket protocol: receives button presses and sends commands.',
    url='',
    author='',
    author_email='',
    license='LGPL',
    package_dir={'': 'src'},
    packages=['lircconnect', 'lircconnect.conduit', 'lircconnect.config', 'lircconnect.connector',
                'lircconnect.protocol', 'lircconnect.support'],
    package_data={'lircconnect.config': ['*.cfg']},
    python_requires='>=3.6',
    install_requires=[
        'configobj',
    ],
    extras_require={
        'test': ['PyHamcrest', 'timeout-decorator', 'pytest'],
    },
    zip_safe=False,
)
