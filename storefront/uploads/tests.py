"""
Tests for image uploads stored under MEDIA_ROOT
"""
import shutil
import tempfile

from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from rest_framework import status

from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient

PNG_BYTES = b'\x89PNG\r\n\x1a\n' + b'\x00' * 64


def png(name='photo.png'):
    return SimpleUploadedFile(name, PNG_BYTES, content_type='image/png')


class UploadAPITests(TestCase):
    def setUp(self):
        cache.clear()
        self.media_root = tempfile.mkdtemp()
        self.override = override_settings(MEDIA_ROOT=self.media_root)
        self.override.enable()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())

    def tearDown(self):
        self.override.disable()
        shutil.rmtree(self.media_root, ignore_errors=True)

    def test_upload_single(self):
        response = self.client.post('/api/upload/single/', {'file': png('My Photo.png')}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data['data']
        self.assertEqual(data['originalName'], 'My Photo.png')
        self.assertEqual(data['mimetype'], 'image/png')
        self.assertEqual(data['size'], len(PNG_BYTES))
        self.assertTrue(data['filename'].startswith('My_Photo-'))
        self.assertTrue(data['filename'].endswith('.png'))
        self.assertIn('/media/uploads/', data['url'])

    def test_image_field_name_accepted(self):
        response = self.client.post('/api/upload/single/', {'image': png()}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_same_name_does_not_overwrite(self):
        first = self.client.post('/api/upload/single/', {'file': png()}, format='multipart')
        second = self.client.post('/api/upload/single/', {'file': png()}, format='multipart')
        self.assertNotEqual(first.data['data']['filename'], second.data['data']['filename'])

    def test_rejects_wrong_type(self):
        text = SimpleUploadedFile('notes.txt', b'hello', content_type='text/plain')
        response = self.client.post('/api/upload/single/', {'file': text}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Invalid File Type')

    @override_settings(UPLOAD_MAX_FILE_SIZE=10)
    def test_rejects_large_file(self):
        response = self.client.post('/api/upload/single/', {'file': png()}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'File Upload Error')

    def test_no_file(self):
        response = self.client.post('/api/upload/single/', {}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'No file uploaded')

    def test_upload_multiple_and_list(self):
        response = self.client.post('/api/upload/multiple/', {'files': [png('a.png'), png('b.png')]}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data['data']), 2)

        response = self.client.get('/api/upload/files/')
        self.assertEqual(response.data['message'], 'Found 2 file(s)')

    @override_settings(UPLOAD_MAX_FILES=1)
    def test_too_many_files(self):
        response = self.client.post('/api/upload/multiple/', {'files': [png('a.png'), png('b.png')]}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_empty(self):
        response = self.client.get('/api/upload/files/')
        self.assertEqual(response.data['data'], [])
        self.assertEqual(response.data['message'], 'No files found')

    def test_delete(self):
        filename = self.client.post('/api/upload/single/', {'file': png()}, format='multipart').data['data']['filename']
        response = self.client.delete(f'/api/upload/files/{filename}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.delete(f'/api/upload/files/{filename}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_delete_by_file_path(self):
        filename = self.client.post('/api/upload/single', {'file': png()}, format='multipart').data['data']['filename']
        response = self.client.delete(f'/api/upload/file/{filename}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get('/api/upload/files').data['data'], [])

    def test_delete_rejects_hidden_name(self):
        response = self.client.delete('/api/upload/files/.env/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_requires_auth(self):
        self.client.logout()
        response = self.client.post('/api/upload/single/', {'file': png()}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
