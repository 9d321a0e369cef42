from django.core.validators import RegexValidator

# Indian mobile numbers: 10 digits starting 6-9
PHONE_VALIDATOR = RegexValidator(
    regex=r'^[6-9]\d{9}$',
    message='Please enter a valid 10-digit phone number',
)

PIN_CODE_VALIDATOR = RegexValidator(
    regex=r'^[1-9][0-9]{5}$',
    message='Please enter a valid 6-digit postal code',
)
