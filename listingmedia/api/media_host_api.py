import hashlib
import time

from listingmedia.api.base_api import BaseApi
from listingmedia.client import Client, FileField
from listingmedia.exceptions import ConfigurationError
from listingmedia.utils.validation import validate_non_empty

# Parameters the media host leaves out of the request signature
UNSIGNED_PARAMS = {'file', 'api_key', 'resource_type', 'cloud_name'}


def sign_params(params: dict[str, str | int], api_secret: str) -> str:
    """
    Sign request parameters the way the media host expects.

    Parameters are sorted by name, joined as ``key=value`` pairs with ``&``,
    suffixed with the API secret and hashed with SHA-1.

    :param params: Request parameters
    :param api_secret: Account API secret
    :return: Hex digest signature
    """
    to_sign = '&'.join(
        f'{key}={value}'
        for key, value in sorted(params.items())
        if key not in UNSIGNED_PARAMS and value not in (None, '')
    )
    return hashlib.sha1(f'{to_sign}{api_secret}'.encode('utf-8')).hexdigest()


class MediaHostApi(BaseApi):
    """
    Signed upload/destroy endpoints of a third-party media host.

    The wire format follows the Cloudinary upload API.
    """

    def __init__(self, client: Client, cloud_name: str, api_key: str, api_secret: str):
        super().__init__(client)
        if not cloud_name or not api_key or not api_secret:
            raise ConfigurationError(
                "MEDIA_HOST_CLOUD_NAME, MEDIA_HOST_API_KEY and MEDIA_HOST_API_SECRET are required"
            )
        self.cloud_name = cloud_name
        self.api_key = api_key
        self._api_secret = api_secret

    def _signed(self, params: dict[str, str | int]) -> dict[str, str | int]:
        params = {**params, 'timestamp': int(time.time())}
        return {
            **params,
            'api_key': self.api_key,
            'signature': sign_params(params, self._api_secret),
        }

    async def upload_image(self, file: FileField, public_id: str, file_format: str | None = None) -> dict:
        """
        Uploads an image.

        :param file: (filename, content, content_type) of the image
        :param public_id: Identifier to store the image under, including its folder
        :param file_format: Optional format to convert the image to, e.g. 'png'
        :return: Upload response with 'public_id' and 'secure_url'
        """
        validate_non_empty(public_id, "public_id")
        params: dict[str, str | int] = {'public_id': public_id}
        if file_format:
            params['format'] = file_format

        return await self._client.post_form(
            f'/{self.cloud_name}/image/upload',
            form=self._signed(params),
            files={'file': file}
        )

    async def destroy_image(self, public_id: str) -> dict:
        """
        Deletes an image.

        :param public_id: Identifier returned by the upload
        :return: API response, {'result': 'ok'} or {'result': 'not found'}
        """
        validate_non_empty(public_id, "public_id")
        return await self._client.post_form(
            f'/{self.cloud_name}/image/destroy',
            form=self._signed({'public_id': public_id})
        )
