from django.urls import path
from .views import (
    account_list_create, account_detail,
    transaction_list_create, transaction_detail,
    expense_category_list_create, expense_category_detail,
    expense_list_create, expense_summary, expense_detail,
    profit_loss_statement, balance_sheet_statement, trial_balance_statement,
    period_list_create, period_detail, period_close, period_reopen, period_check
)

urlpatterns = [
    path('accounts/', account_list_create, name='account-list-create'),
    path('accounts/<int:pk>/', account_detail, name='account-detail'),
    path('transactions/', transaction_list_create, name='transaction-list-create'),
    path('transactions/<int:pk>/', transaction_detail, name='transaction-detail'),
    path('expense-categories/', expense_category_list_create, name='expense-category-list-create'),
    path('expense-categories/<int:pk>/', expense_category_detail, name='expense-category-detail'),
    path('expenses/', expense_list_create, name='expense-list-create'),
    path('expenses/summary/', expense_summary, name='expense-summary'),
    path('expenses/<int:pk>/', expense_detail, name='expense-detail'),
    path('accounting/profit-loss/', profit_loss_statement, name='profit-loss'),
    path('accounting/balance-sheet/', balance_sheet_statement, name='balance-sheet'),
    path('accounting/trial-balance/', trial_balance_statement, name='trial-balance'),
    path('accounting-periods/', period_list_create, name='accounting-period-list-create'),
    path('accounting-periods/check/', period_check, name='accounting-period-check'),
    path('accounting-periods/<int:pk>/', period_detail, name='accounting-period-detail'),
    path('accounting-periods/<int:pk>/close/', period_close, name='accounting-period-close'),
    path('accounting-periods/<int:pk>/reopen/', period_reopen, name='accounting-period-reopen'),
]
