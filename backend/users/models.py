import uuid
from django.db import models
from django.contrib.auth.models import AbstractUser
from django.conf import settings
from cryptography.fernet import Fernet, InvalidToken
# Custom user with role field and encrypted payment reference
ROLE_SITE_OWNER = 'site_owner'
ROLE_INVESTOR = 'investor'
ROLE_ADMIN = 'admin'
ROLE_CHOICES = [
    (ROLE_SITE_OWNER,'Site Owner'),(ROLE_INVESTOR,'Investor'),(ROLE_ADMIN,'Admin')
]
def gen_user_id():
    return uuid.uuid4().hex
def _fernet():
    key = settings.FERNET_KEY.encode() if isinstance(settings.FERNET_KEY,str) else settings.FERNET_KEY
    return Fernet(key)
class User(AbstractUser):
    # identifiers come from the external auth provider, so they are strings
    id = models.CharField(primary_key=True, max_length=64, default=gen_user_id, editable=False)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_INVESTOR)
    profile_image_url = models.URLField(max_length=500, blank=True, default='')
    stripe_customer_encrypted = models.BinaryField(null=True, blank=True)
    stripe_subscription_id = models.CharField(max_length=255, blank=True, default='')
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_admin_role(self):
        return self.role == ROLE_ADMIN

    def set_stripe_customer_id(self, plaintext):
        if not plaintext:
            self.stripe_customer_encrypted = None
            return
        self.stripe_customer_encrypted = _fernet().encrypt(plaintext.encode())

    def get_stripe_customer_id(self):
        if not self.stripe_customer_encrypted:
            return ''
        try:
            return _fernet().decrypt(bytes(self.stripe_customer_encrypted)).decode()
        except InvalidToken:
            return 'ENCRYPTION_ERROR'
