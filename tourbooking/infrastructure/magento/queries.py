_OPTION_VALUE_FIELDS = """
                value {
                  option_type_id
                  title
                  price
                  price_type
                  sku
                  sort_order
                }"""

GET_PRODUCT = f"""
    query GetProduct($urlKey: String!) {{
      products(filter: {{ url_key: {{ eq: $urlKey }} }}) {{
        items {{
          sku
          name
          url_key
          quantity
          stock_status
          special_price
          enquiry_only
          image {{
            url
          }}
          short_description {{
            html
          }}
          price_range {{
            maximum_price {{
              final_price {{
                value
                currency
              }}
            }}
          }}
          ... on CustomizableProductInterface {{
            options {{
              __typename
              title
              required
              sort_order
              option_id
              ... on CustomizableDropDownOption {{{_OPTION_VALUE_FIELDS}
              }}
              ... on CustomizableRadioOption {{{_OPTION_VALUE_FIELDS}
              }}
              ... on CustomizableCheckboxOption {{{_OPTION_VALUE_FIELDS}
              }}
              ... on CustomizableMultipleOption {{{_OPTION_VALUE_FIELDS}
              }}
            }}
          }}
        }}
      }}
    }}
"""

GET_BOOKING_PRODUCTS = """
    query GetBookingProducts {
      products(filter: { category_url_path: { eq: "booking" } }) {
        items {
          name
          sku
          url_key
          price_range {
            maximum_price {
              final_price {
                currency
                value
              }
            }
          }
          image {
            label
            url
          }
          media_gallery {
            url
          }
        }
      }
    }
"""

GET_BOOKING_AVAILABILITY = """
    query GetBookingAvailability($sku: String!) {
      bookingCountBySku(sku: $sku) {
        bookings {
          allowed_qty
          count
          date
          qty_total
          remaining_qty
        }
        message
        sku
        success
        total_bookings
      }
    }
"""

CREATE_EMPTY_CART = """
    mutation {
      createEmptyCart
    }
"""

ADD_VIRTUAL_PRODUCTS_TO_CART = """
    mutation AddVirtualProductsToCart($input: AddVirtualProductsToCartInput!) {
      addVirtualProductsToCart(input: $input) {
        cart {
          items {
            product {
              name
              sku
            }
            quantity
          }
          prices {
            grand_total {
              value
              currency
            }
          }
        }
      }
    }
"""

CLEAR_CART = """
    mutation ClearCart($uid: String!) {
      clearCart(input: { uid: $uid }) {
        cart {
          id
        }
      }
    }
"""

SET_GUEST_EMAIL = """
    mutation SetGuestEmail($cartId: String!, $email: String!) {
      setGuestEmailOnCart(input: { cart_id: $cartId, email: $email }) {
        cart {
          email
        }
      }
    }
"""

SET_BILLING_ADDRESS = """
    mutation SetBillingAddress($cartId: String!, $address: CartAddressInput!) {
      setBillingAddressOnCart(input: { cart_id: $cartId, billing_address: { address: $address } }) {
        cart {
          billing_address {
            firstname
            lastname
            company
            street
            city
            region {
              code
              label
            }
            postcode
            telephone
            country {
              code
              label
            }
          }
        }
      }
    }
"""

GET_PAYMENT_METHODS = """
    query GetPaymentMethods($cartId: String!) {
      cart(cart_id: $cartId) {
        available_payment_methods {
          code
          title
        }
      }
    }
"""

SET_PAYMENT_METHOD = """
    mutation SetPaymentMethod($cartId: String!, $paymentMethodCode: String!) {
      setPaymentMethodOnCart(input: { cart_id: $cartId, payment_method: { code: $paymentMethodCode } }) {
        cart {
          selected_payment_method {
            code
            title
          }
        }
      }
    }
"""

PLACE_ORDER = """
    mutation PlaceOrder($cartId: String!) {
      placeOrder(input: { cart_id: $cartId }) {
        order {
          order_number
        }
        paymentlink
      }
    }
"""

GET_CART_TOTALS = """
    query GetCartTotals($cartId: String!) {
      cart(cart_id: $cartId) {
        email
        prices {
          grand_total {
            value
            currency
          }
          subtotal_including_tax {
            value
            currency
          }
          subtotal_excluding_tax {
            value
            currency
          }
          applied_taxes {
            label
            amount {
              value
              currency
            }
          }
        }
        applied_coupons {
          code
        }
      }
    }
"""
