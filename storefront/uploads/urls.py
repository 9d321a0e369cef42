from django.urls import path
from .views import upload_single, upload_multiple, upload_list, upload_delete

urlpatterns = [
    path('upload/single/', upload_single, name='upload-single'),
    path('upload/multiple/', upload_multiple, name='upload-multiple'),
    path('upload/files/', upload_list, name='upload-list'),
    path('upload/files/<str:filename>/', upload_delete, name='upload-delete'),
    path('upload/file/<str:filename>/', upload_delete, name='upload-delete-file'),
]
