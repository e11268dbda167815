from django.conf.urls import include
from django.contrib import admin
from django.urls import path

urlpatterns = [
    path('', include('exam_integrity.urls', namespace='exam_integrity')),
    path('admin/', admin.site.urls),
]
