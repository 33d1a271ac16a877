from .kyc_status_provider import KycStatusProvider as KycStatusProvider
from .photo_storage import PackagePhoto as PackagePhoto
from .photo_storage import PackagePhotoStorage as PackagePhotoStorage
