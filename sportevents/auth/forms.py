"""
Input schemas for authentication actions.
"""

from wtforms import StringField, PasswordField
from wtforms.validators import DataRequired, Email, EqualTo, Length, Optional

from sportevents.forms import ActionForm, strip_or_none


def normalize_email(value):
    value = strip_or_none(value)
    return value.lower() if value else value


class SignUpForm(ActionForm):
    email = StringField('Email', filters=[normalize_email], validators=[
        DataRequired(message='Email is required'),
        Email(message='Invalid email address'),
        Length(max=255, message='Email must be 255 characters or less')
    ])
    password = PasswordField('Password', validators=[
        DataRequired(message='Password is required'),
        Length(min=8, message='Password must be at least 8 characters'),
        Length(max=100, message='Password must be less than 100 characters')
    ])
    confirm_password = PasswordField('Confirm Password', validators=[
        DataRequired(message='Please confirm your password'),
        EqualTo('password', message="Passwords don't match")
    ])
    first_name = StringField('First Name', filters=[strip_or_none], validators=[
        Optional(), Length(max=64)
    ])
    last_name = StringField('Last Name', filters=[strip_or_none], validators=[
        Optional(), Length(max=64)
    ])


class LoginForm(ActionForm):
    email = StringField('Email', filters=[normalize_email], validators=[
        DataRequired(message='Email is required'),
        Email(message='Invalid email address')
    ])
    password = PasswordField('Password', validators=[
        DataRequired(message='Password is required')
    ])
