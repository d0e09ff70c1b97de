from django.urls import path
from . import views

urlpatterns = [
    path('requests/', views.RequestListView.as_view(), name='request_list'),
    path('requests/<str:reference>/', views.RequestDetailView.as_view(), name='request_detail'),
    path('requests/<str:reference>/assign/', views.RequestAssignView.as_view(), name='request_assign'),
    path('requests/<str:reference>/status/', views.RequestStatusView.as_view(), name='request_status'),
    path('requests/<str:reference>/warranty/', views.RequestWarrantyView.as_view(), name='request_warranty'),
    path('requests/<str:reference>/attachments/', views.RequestAttachmentView.as_view(), name='request_attachments'),
    path('requests/<str:reference>/delete/', views.RequestDeleteView.as_view(), name='request_delete'),
    path('summary/', views.SummaryView.as_view(), name='summary'),
    path('employees/available/', views.AvailableEmployeesView.as_view(), name='available_employees'),
    path('metrics/', views.MetricsView.as_view(), name='metrics'),
]
