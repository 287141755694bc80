"""Navigator Secrets Meta information.
   Navigator Secrets stores organization members' secrets with field-level
   envelope encryption.
"""
__title__ = 'navigator_secrets'
__description__ = (
   'Navigator Secrets stores organization members\' secrets '
   'with field-level envelope encryption.'
)
__version__ = '0.1.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
